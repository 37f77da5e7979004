import pytest

import multitool
from multitool.core.errors import ConfigurationError, MultitoolError, ParseError, StoreConnectionError


@pytest.mark.parametrize(
    "error_cls, builtin",
    [
        (ConfigurationError, ValueError),
        (StoreConnectionError, ConnectionError),
        (ParseError, ValueError),
    ],
)
def test_error_hierarchy(error_cls, builtin):
    assert issubclass(error_cls, MultitoolError)
    assert issubclass(error_cls, builtin)


def test_package_exports():
    for name in multitool.__all__:
        assert hasattr(multitool, name)
