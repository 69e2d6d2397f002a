"""BDD tests for alcohol handover."""

from pytest_bdd import scenarios

scenarios("features/alcohol_handover.feature")
