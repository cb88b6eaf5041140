from __future__ import annotations

from pathlib import Path

import pytest

from economy_service.app.config import ECONOMY_CONFIG_PATH_ENV, load_config


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_when_no_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ECONOMY_CONFIG_PATH_ENV, raising=False)
    monkeypatch.chdir(tmp_path)

    cfg = load_config()

    assert cfg.coupon.validity_months == 1
    assert cfg.coupon.sweep_interval_seconds == 3600.0
    assert cfg.rewards.amount_for("assignment") == 5
    assert cfg.rewards.amount_for("praise_given") == 1
    assert cfg.rewards.amount_for("praise_received") == 2
    assert cfg.rewards.amount_for("goal") == 20
    assert cfg.rewards.amount_for("attendance") == 1
    assert len(cfg.shop.default_items) == 6


def test_loads_yaml_from_explicit_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(
        tmp_path / "economy.yaml",
        """
coupon:
  validity_months: 2
  sweep_interval_seconds: 60
  sweep_scheduler_enabled: false
rewards:
  assignment: 8
shop:
  default_items:
    - title: 자리 바꾸기
      category: privilege
      price: 15
""",
    )
    monkeypatch.setenv(ECONOMY_CONFIG_PATH_ENV, str(path))

    cfg = load_config()

    assert cfg.coupon.validity_months == 2
    assert cfg.coupon.sweep_interval_seconds == 60.0
    assert cfg.coupon.sweep_scheduler_enabled is False
    assert cfg.rewards.assignment == 8
    # 지정하지 않은 값은 기본값
    assert cfg.rewards.goal == 20
    assert [(i.title, i.price) for i in cfg.shop.default_items] == [("자리 바꾸기", 15)]


def test_finds_config_in_parent_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path / "config.yaml", "rewards:\n  attendance: 3\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.delenv(ECONOMY_CONFIG_PATH_ENV, raising=False)
    monkeypatch.chdir(nested)

    assert load_config().rewards.attendance == 3


@pytest.mark.parametrize(
    "text",
    [
        "coupon:\n  validity_months: 0\n",
        "coupon:\n  sweep_interval_seconds: abc\n",
        "rewards:\n  goal: -1\n",
        "shop:\n  default_items:\n    - title: 무료권\n      price: 0\n",
    ],
)
def test_invalid_values_raise(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, text: str) -> None:
    path = _write(tmp_path / "bad.yaml", text)
    monkeypatch.setenv(ECONOMY_CONFIG_PATH_ENV, str(path))

    with pytest.raises(RuntimeError):
        load_config()


def test_missing_explicit_path_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ECONOMY_CONFIG_PATH_ENV, str(tmp_path / "missing.yaml"))

    with pytest.raises(RuntimeError):
        load_config()
