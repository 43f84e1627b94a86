import pytest

from memcore import errors

ERRORS = [errors.ValidationError, errors.ProviderError, errors.StoreError,
          errors.OwnershipError, errors.NotFoundError]


@pytest.mark.parametrize("cls", ERRORS)
def test_errors_share_one_root(cls):
    assert issubclass(cls, errors.MemoryCoreError)


@pytest.mark.parametrize("cls", [errors.MemoryCoreError] + ERRORS)
def test_errors_are_documented(cls):
    assert cls.__doc__ and cls.__doc__.strip()
