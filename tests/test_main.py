"""Tests for the command-line entry point."""

import json

import pytest

from momentum.main import main


T0 = 1_700_000_000
DAY = 86_400


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in [
        "BACKTEST_MIN_LOOKBACK",
        "BACKTEST_MAX_HOLD",
        "LEVEL_LOOKBACK",
        "LEVEL_TOLERANCE",
        "DEFAULT_TIMEFRAME",
        "LOG_LEVEL",
    ]:
        monkeypatch.delenv(var, raising=False)


def _candle(idx, o, h, l, c, vol=1000):
    return {"time": T0 + idx * DAY, "open": o, "high": h, "low": l, "close": c, "volume": vol}


def _write(tmp_path, name, payload) -> str:
    path = tmp_path / name
    path.write_text(json.dumps(payload))
    return str(path)


def _gap_history() -> list[dict]:
    """30 flat bars, a gap-up bar, then a bar reaching the Gap & Go target."""
    candles = [_candle(i, 10, 10, 10, 10) for i in range(30)]
    candles.append(_candle(30, 10.5, 10.5, 10.5, 10.5))
    candles.append(_candle(31, 10.02, 10.08, 10.01, 10.05))
    candles.append(_candle(32, 10.05, 10.05, 10.05, 10.05))
    return candles


# ── Backtest mode ────────────────────────────────────────────────────────


class TestBacktestMode:
    def test_flat_history(self, tmp_path, capsys):
        path = _write(tmp_path, "flat.json", [_candle(i, 10, 10, 10, 10) for i in range(40)])
        code = main(["--mode", "backtest", "--candles", path, "--symbol", "flat"])
        assert code == 0
        out = json.loads(capsys.readouterr().out)
        assert out["symbol"] == "FLAT"
        assert out["timeframe"] == "1D"
        assert out["strategy_filter"] == "all"
        assert out["total_trades"] == 0
        assert out["trades"] == []

    def test_gap_history_wrapped(self, tmp_path, capsys):
        path = _write(tmp_path, "gap.json", {"candles": _gap_history()})
        code = main([
            "--mode", "backtest", "--candles", path, "--symbol", "ABCD",
            "--strategy", "gap_and_go",
        ])
        assert code == 0
        out = json.loads(capsys.readouterr().out)
        assert out["strategy_filter"] == "gap_and_go"
        assert out["total_trades"] == 1
        assert out["trades"][0]["outcome"] == "win"
        assert out["win_rate"] == 100.0

    def test_too_few_bars(self, tmp_path, capsys):
        path = _write(tmp_path, "short.json", [_candle(i, 10, 10, 10, 10) for i in range(10)])
        code = main(["--mode", "backtest", "--candles", path, "--symbol", "ABCD"])
        assert code == 1
        assert "Not enough historical data" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        code = main(["--mode", "backtest", "--candles", str(path), "--symbol", "ABCD"])
        assert code == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        missing = str(tmp_path / "missing.json")
        code = main(["--mode", "backtest", "--candles", missing, "--symbol", "ABCD"])
        assert code == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_malformed_candle(self, tmp_path, capsys):
        path = _write(tmp_path, "partial.json", [{"time": T0, "open": 1.0}])
        code = main(["--mode", "backtest", "--candles", path, "--symbol", "ABCD"])
        assert code == 1
        assert "malformed candle" in capsys.readouterr().err

    def test_inverted_candle(self, tmp_path, capsys):
        candles = [_candle(i, 10, 10, 10, 10) for i in range(40)]
        candles[1] = _candle(1, 10, 9.0, 11.0, 10)
        path = _write(tmp_path, "inverted.json", candles)
        code = main(["--mode", "backtest", "--candles", path, "--symbol", "ABCD"])
        assert code == 1
        err = capsys.readouterr().err
        assert "malformed candle" in err
        assert "low 11.0 > high 9.0" in err

    def test_intraday_timeframe_rejected(self, tmp_path):
        path = _write(tmp_path, "gap.json", _gap_history())
        with pytest.raises(SystemExit) as exc:
            main(["--mode", "backtest", "--candles", path, "--symbol", "ABCD", "--timeframe", "5m"])
        assert exc.value.code == 2

    def test_symbol_required(self, tmp_path):
        path = _write(tmp_path, "gap.json", _gap_history())
        with pytest.raises(SystemExit) as exc:
            main(["--mode", "backtest", "--candles", path])
        assert exc.value.code == 2


# ── Scan mode ────────────────────────────────────────────────────────────


class TestScanMode:
    def _snapshot(self) -> dict:
        return {
            "quote": {
                "symbol": "abcd",
                "price": 10.2,
                "open": 10.0,
                "prevClose": 9.0,
                "changePercent": 13.3,
            },
            "candles_1m": [
                {"time": 60, "open": 10.2, "high": 10.4, "low": 10.1, "close": 10.3},
                {"time": 0, "open": 10.0, "high": 10.5, "low": 9.8, "close": 10.2},
                {"time": 120, "open": 10.3, "high": 10.45, "low": 10.2, "close": 10.25},
            ],
        }

    def test_ranked_setups(self, tmp_path, capsys):
        path = _write(tmp_path, "snap.json", self._snapshot())
        now = 1_700_000_000_000
        code = main(["--mode", "scan", "--input", path, "--now", str(now)])
        assert code == 0
        out = json.loads(capsys.readouterr().out)
        assert out["symbol"] == "ABCD"
        top = out["setups"][0]
        assert top["strategy_id"] == "gap_and_go"
        # Candles are re-sorted, so the 10.50 high bar is the first candle
        assert top["entry"] == pytest.approx(10.51)
        assert top["generated_at"] == now
        assert isinstance(top["reasoning"], list)

    def test_news_score_adds_catalyst(self, tmp_path, capsys):
        snap = self._snapshot()
        snap["candles_5m"] = snap["candles_1m"]
        path = _write(tmp_path, "snap.json", snap)
        code = main(["--mode", "scan", "--input", path, "--news-score", "7", "--now", "0"])
        assert code == 0
        ids = [s["strategy_id"] for s in json.loads(capsys.readouterr().out)["setups"]]
        assert "news_catalyst" in ids

    def test_missing_quote(self, tmp_path, capsys):
        path = _write(tmp_path, "snap.json", {"candles_1m": []})
        assert main(["--mode", "scan", "--input", path]) == 1
        assert "'quote'" in capsys.readouterr().err

    def test_unknown_session(self, tmp_path, capsys):
        snap = self._snapshot()
        snap["quote"]["session"] = "overnight"
        path = _write(tmp_path, "snap.json", snap)
        assert main(["--mode", "scan", "--input", path]) == 1
        assert "unknown session 'overnight'" in capsys.readouterr().err

    def test_input_required(self):
        with pytest.raises(SystemExit) as exc:
            main(["--mode", "scan"])
        assert exc.value.code == 2
