import importlib


def test_package_importable() -> None:
    module = importlib.import_module('ofx_typed')
    assert hasattr(module, '__version__')
    assert callable(module.parse)
