"""
Tests for configuration and logging setup.
"""

import io
import logging

import pytest

import embedscope.config as config_module
from embedscope.config import Config, configure, get_config
from embedscope.utils.logging_config import (
    ROOT_LOGGER_NAME,
    get_logger,
    quiet_primitive_output,
    setup_logging,
)


@pytest.fixture
def restore_config():
    """Put the global config back after the test."""
    saved = config_module.config
    yield
    config_module.config = saved


def test_defaults():
    """Test default configuration values."""
    cfg = Config()
    assert cfg.verbose is False
    assert cfg.log_level == "WARNING"
    assert cfg.range_warning_threshold == 1000.0
    assert cfg.min_umap_samples == 10


@pytest.mark.parametrize(
    "kwargs",
    [{"log_level": "LOUD"}, {"range_warning_threshold": 0}, {"min_umap_samples": 1}],
)
def test_invalid_values(kwargs):
    """Test out-of-range values are rejected."""
    with pytest.raises(ValueError):
        Config(**kwargs)


def test_from_env(monkeypatch):
    """Test reading settings from environment variables."""
    monkeypatch.setenv("EMBEDSCOPE_VERBOSE", "true")
    monkeypatch.setenv("EMBEDSCOPE_LOG_LEVEL", "debug")
    cfg = Config.from_env()
    assert cfg.verbose is True
    assert cfg.log_level == "DEBUG"


def test_from_env_debug_flag(monkeypatch):
    """Test DEBUG turns on verbose output."""
    monkeypatch.delenv("EMBEDSCOPE_VERBOSE", raising=False)
    monkeypatch.setenv("DEBUG", "True")
    assert Config.from_env().verbose is True


def test_from_env_defaults(monkeypatch):
    """Test an empty environment gives the defaults."""
    for name in ("EMBEDSCOPE_VERBOSE", "DEBUG", "EMBEDSCOPE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    assert Config.from_env() == Config()


def test_configure_replaces_global(restore_config):
    """Test configure swaps the global config without mutating the old one."""
    before = get_config()
    updated = configure(verbose=True, min_umap_samples=20)
    assert get_config() is updated
    assert updated.verbose is True
    assert updated.min_umap_samples == 20
    assert before is not updated
    assert before.min_umap_samples == 10


def test_components_keep_their_config(restore_config):
    """Test components hold the config they were built with."""
    from embedscope import UMAP

    model = UMAP()
    configure(min_umap_samples=50)
    assert model.config.min_umap_samples != 50
    assert UMAP().config.min_umap_samples == 50


def test_get_logger_namespaces():
    """Test loggers live under the package namespace."""
    assert get_logger("embedscope.algorithms.pca").name == "embedscope.algorithms.pca"
    assert get_logger("scratch").name == "embedscope.scratch"
    assert get_logger(ROOT_LOGGER_NAME).name == ROOT_LOGGER_NAME


def test_setup_logging_is_idempotent():
    """Test repeated setup does not add handlers."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    saved_level = root.level
    try:
        setup_logging("INFO")
        handlers = list(root.handlers)
        setup_logging("DEBUG")
        assert root.handlers == handlers
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(saved_level)


def test_quiet_primitive_output_swallows_prints(capsys):
    """Test backend prints are hidden unless verbose."""
    with quiet_primitive_output(verbose=False):
        print("epoch 1/200")
    with quiet_primitive_output(verbose=True):
        print("epoch 2/200")
    captured = capsys.readouterr()
    assert "epoch 1/200" not in captured.out
    assert "epoch 2/200" in captured.out


def test_quiet_primitive_output_propagates_errors():
    """Test errors escape the quiet block."""
    with pytest.raises(RuntimeError):
        with quiet_primitive_output(verbose=False):
            raise RuntimeError("boom")


def test_quiet_primitive_output_restores_streams():
    """Test stdout is restored afterwards."""
    import sys

    stdout = sys.stdout
    with quiet_primitive_output(verbose=False):
        assert isinstance(sys.stdout, io.StringIO)
    assert sys.stdout is stdout
