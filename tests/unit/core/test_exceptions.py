"""Unit tests for the nostaro exception hierarchy.

Tests verify:
- every concrete exception derives from NostaroError
- except clauses catch the expected subclasses
- all exceptions accept a message string
"""

import pytest

from nostaro.core.exceptions import (
    ConfigurationError,
    DeliveryError,
    NostaroError,
    PaymentError,
    ProtocolError,
    PublishingError,
    StorageError,
    UploadError,
)


ALL_CONCRETE = (
    ConfigurationError,
    StorageError,
    ProtocolError,
    PublishingError,
    DeliveryError,
    UploadError,
    PaymentError,
)


class TestHierarchy:
    @pytest.mark.parametrize("cls", ALL_CONCRETE)
    def test_subclass_of_base(self, cls):
        assert issubclass(cls, NostaroError)
        assert issubclass(cls, Exception)

    @pytest.mark.parametrize("cls", ALL_CONCRETE)
    def test_caught_by_base(self, cls):
        with pytest.raises(NostaroError):
            raise cls("boom")

    def test_siblings_independent(self):
        assert not issubclass(DeliveryError, StorageError)
        assert not issubclass(UploadError, PaymentError)


class TestMessages:
    @pytest.mark.parametrize("cls", ALL_CONCRETE)
    def test_message(self, cls):
        assert str(cls("something failed")) == "something failed"

    def test_chaining(self):
        cause = OSError("disk")
        try:
            raise StorageError("Cannot open cache") from cause
        except StorageError as e:
            assert e.__cause__ is cause
