from wimctl.adapters.errors import IntegrityCheckFailed
from wimctl.domain.errors import UnsupportedUpdateCommand


def test_adapter_error_has_message_and_details():
    err = IntegrityCheckFailed("boom", details={"path": "a.wim"})
    assert "boom" in str(err)
    assert err.details["path"] == "a.wim"


def test_domain_error_carries_hint():
    err = UnsupportedUpdateCommand("nope", hint="use add")
    assert str(err) == "nope"
    assert err.hint == "use add"


def test_adapter_errors_share_the_domain_root():
    from wimctl.adapters.errors import AdapterError
    from wimctl.domain.errors import WimError

    assert issubclass(AdapterError, WimError)
    assert isinstance(IntegrityCheckFailed("x"), WimError)
