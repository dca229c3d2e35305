import json

import pytest

from errors import ConfigurationError
from main import main
from simulator import SimulationRunner, format_report
from tracefile import TraceEvent
from visualize import plot_level_stats, plot_miss_rates

CACHE = {"l1_size": 64, "l1_assoc": 1, "l1_block_size": 32,
         "vc_num_blocks": 1, "l2_size": 256, "l2_assoc": 2}


def test_run_summary():
    runner = SimulationRunner({"cache": CACHE})
    events = [TraceEvent("w", 0), TraceEvent("w", 0x40), TraceEvent("r", 0), TraceEvent("r", 0x200)]
    summary = runner.run(events)
    assert summary["total_events"] == 4
    l1, l2 = summary["levels"]
    assert (l1["name"], l2["name"]) == ("L1", "L2")
    assert (l1["reads"], l1["read_misses"], l1["writes"], l1["write_misses"]) == (2, 2, 2, 2)
    assert l1["miss_rate"] == 1.0
    assert summary["victim_buffer"]["hits"] == 1
    assert l2["reads"] == 1 and l2["read_misses"] == 1


def test_runner_rejects_bad_config():
    with pytest.raises(ConfigurationError):
        SimulationRunner({"cache": dict(CACHE, l1_size=100)})


def test_synthetic_trace_when_no_path():
    cfg = {"cache": CACHE, "synthetic": {"num_requests": 300, "working_set_kb": 1, "random_seed": 3}}
    first = SimulationRunner(cfg).run()
    second = SimulationRunner(cfg).run()
    assert first["total_events"] == 300
    assert first == second


def test_format_report():
    runner = SimulationRunner({"cache": dict(CACHE, vc_num_blocks=0, l2_size=0, l2_assoc=0)})
    text = format_report(runner.run([TraceEvent("r", 0)]))
    assert text.splitlines() == [
        "L1 Cache Stats:",
        "Number of reads: 1",
        "Number of read misses: 1",
        "Number of writes: 0",
        "Number of write misses: 0",
        "Number of writebacks: 0",
    ]


def test_save_results(tmp_path):
    runner = SimulationRunner({"cache": CACHE})
    summary = runner.run([TraceEvent("w", 4)])
    path = runner.save_results(summary, {"results_dir": str(tmp_path / "out")})
    with open(path) as f:
        assert json.load(f)["levels"][0]["writes"] == 1


def test_plots(tmp_path):
    summary = SimulationRunner({"cache": CACHE}).run([TraceEvent("w", 0), TraceEvent("r", 0x40)])
    stats_png = tmp_path / "plots" / "level_stats.png"
    rates_png = tmp_path / "plots" / "miss_rates.png"
    plot_level_stats(summary, str(stats_png))
    plot_miss_rates(summary, str(rates_png))
    assert stats_png.stat().st_size > 0
    assert rates_png.stat().st_size > 0


def test_main_positional(tmp_path, capsys):
    trace = tmp_path / "trace.txt"
    trace.write_text("r 0\nr 20\nw 0\nr 420\n")
    assert main(["1024", "1", "32", "0", "0", "0", str(trace)]) == 0
    out = capsys.readouterr().out
    assert "Number of reads: 3" in out
    assert "Number of write misses: 1" in out
    assert "L2 Cache Stats" not in out


def test_main_config_with_results(tmp_path, capsys):
    trace = tmp_path / "trace.txt"
    trace.write_text("w 0\nw 40\nr 0\n")
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"cache": CACHE, "trace": {"path": str(trace)}}))
    results = tmp_path / "results"
    assert main(["--config", str(cfg), "--results-dir", str(results)]) == 0
    assert "Victim Buffer Stats:" in capsys.readouterr().out
    assert (results / "results.json").exists()


def test_main_configuration_error(tmp_path):
    trace = tmp_path / "trace.txt"
    trace.write_text("r 0\n")
    assert main(["1000", "2", "32", "0", "0", "0", str(trace)]) == 1


def test_main_trace_error(tmp_path):
    trace = tmp_path / "trace.txt"
    trace.write_text("r 0\nq 1\n")
    assert main(["1024", "1", "32", "0", "0", "0", str(trace)]) == 1


def test_main_usage_error():
    with pytest.raises(SystemExit):
        main(["1024", "1"])


def test_main_unwritable_results_dir(tmp_path):
    trace = tmp_path / "trace.txt"
    trace.write_text("w 0\n")
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    args = ["1024", "1", "32", "0", "0", "0", str(trace), "--results-dir", str(blocker / "out")]
    assert main(args) == 1
