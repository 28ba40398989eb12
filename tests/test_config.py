import os
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest

import GradCatalog.core.backend.backend as backend
from GradCatalog.backend import config
from GradCatalog.core.backend.context import gpu_scope, promotion_scope


def test_cli_overrides_are_parsed():
    cli = config.parse_cli_args(["--gc-device", "gpu", "--gc-promotion", "false", "-q", "tests/"])
    assert cli == {"device": "gpu", "promotion": False}


def test_cli_ignores_unrelated_arguments():
    assert config.parse_cli_args(["-x", "--maxfail=1"]) == {}


def test_invalid_cli_value_is_ignored():
    assert config.parse_cli_args(["--gc-device", "cuda", "--gc-log-level", "DEBUG"]) == {}


@pytest.mark.parametrize("flag", ["-h", "--help", "--gc-device=cuda"])
def test_import_leaves_host_command_line_alone(flag):
    root = Path(__file__).resolve().parents[1]
    env = dict(os.environ, PYTHONPATH=os.pathsep.join([str(root), os.environ.get("PYTHONPATH", "")]))
    result = subprocess.run(
        [sys.executable, "-c", "import GradCatalog; print('imported')", flag],
        cwd=root, env=env, capture_output=True, text=True, timeout=120,
    )
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == "imported"


def test_yaml_config_is_loaded(tmp_path):
    path = tmp_path / "gc.yaml"
    path.write_text("device: cpu\ncompute_dtype: float64\npromotion: false\n")
    assert config.load_yaml_config(str(path)) == {"device": "cpu", "compute_dtype": "float64", "promotion": False}


def test_missing_yaml_config_gives_empty(tmp_path):
    assert config.load_yaml_config(str(tmp_path / "absent.yaml")) == {}


def test_cli_wins_over_yaml(tmp_path):
    path = tmp_path / "gc.yaml"
    path.write_text("log_level: INFO\npromotion: false\n")
    cfg = config.load_config(["--gc-config", str(path), "--gc-log-level", "DEBUG"])
    assert cfg["log_level"] == "DEBUG"
    assert cfg["promotion"] is False
    assert cfg["compute_dtype"] == config.DEFAULTS["compute_dtype"]
    assert cfg["config"] == str(path)


def test_merge_does_not_mutate_base():
    base = {"device": "cpu"}
    merged = config.merge_configs(base, {"device": "gpu"})
    assert merged == {"device": "gpu"}
    assert base == {"device": "cpu"}


def test_promotion_scope_restores_state():
    backend.set_promotion(True)
    backend.set_compute_dtype("float32")
    with promotion_scope(False, "float64") as enabled:
        assert enabled is False
        assert backend.get_compute_dtype() == "float64"
    assert backend.is_promotion_enabled()
    assert backend.get_compute_dtype() == "float32"


def test_compute_dtype_is_validated():
    with pytest.raises(ValueError):
        backend.set_compute_dtype("float16")


def test_cpu_backend_is_numpy():
    backend.use_cpu()
    assert backend.xp is np
    assert backend.get_device() == "cpu"
    assert backend.device_name() == "CPU (NumPy)"


@pytest.mark.skipif(backend.gpu_available(), reason="CuPy is installed")
def test_gpu_scope_without_cupy():
    with pytest.raises(RuntimeError):
        with gpu_scope():
            pass
    with pytest.raises(ImportError):
        backend.use_gpu()


def test_configure_rejects_narrow_compute_dtype():
    with pytest.raises(ValueError):
        backend.configure({"compute_dtype": "float16"})
    assert backend.get_compute_dtype() == "float32"


def test_configure_applies_settings():
    try:
        backend.configure({"device": "cpu", "promotion": False, "compute_dtype": "float64", "log_level": "info"})
        assert not backend.is_promotion_enabled()
        assert backend.get_compute_dtype() == "float64"
        assert backend.get_device() == "cpu"
    finally:
        backend.configure(config.DEFAULTS)
