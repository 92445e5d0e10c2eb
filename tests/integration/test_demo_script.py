# tests/integration/test_demo_script.py
"""
Smoke test for the rich demo script, driven without Hydra.
"""

import importlib.util
from pathlib import Path

from omegaconf import OmegaConf

from nftmarket.config import load_config

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "run_market_demo.py"


def load_demo_module():
    spec = importlib.util.spec_from_file_location("run_market_demo", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


DEMO = {"demo": {"royalty_bps": 300, "creator_shares": [6000, 4000], "ask_price": 100, "bid_prices": [100, 50]}}


def test_demo_runs_and_settles(capsys):
    demo = load_demo_module()
    cfg = OmegaConf.merge(load_config(), OmegaConf.create(DEMO))
    deployment = demo.run_demo(cfg)

    market = deployment.market
    assert [c.symbol for c in market.collections()] == ["ART", "EDN"]
    # two sales at 100 each pay the beneficiary 3 apiece
    assert market.withdrawable_balance(deployment.beneficiary) == 6
    assert "Balances" in capsys.readouterr().out


def test_demo_closes_event_log(tmp_path, capsys):
    demo = load_demo_module()
    cfg = OmegaConf.merge(
        load_config(),
        OmegaConf.create(DEMO),
        OmegaConf.create(
            {"events": {"log_events": True, "log_dir": str(tmp_path), "experiment_id": "demo"}}
        ),
    )
    deployment = demo.run_demo(cfg)

    assert deployment.market.events.closed
    lines = (tmp_path / "demo_events.jsonl").read_text().splitlines()
    assert len(lines) == len(deployment.market.events.events)
