"""Load an aggregate by id, translating a miss into ``NotFoundError``."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.shared.errors import NotFoundError


def load(aggregate_cls, identifier):
    name = aggregate_cls.__name__
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError as exc:
        raise NotFoundError({f"{name.lower()}_id": [f"{name} {identifier} does not exist"]}) from exc
