import pytest


_INFERENCE_TIMINGS = []


@pytest.fixture(scope="session")
def inference_timing_recorder():
    def _record(entry):
        _INFERENCE_TIMINGS.append(entry)

    return _record


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    if not _INFERENCE_TIMINGS:
        return
    terminalreporter.section("Inference latency", sep="-")
    baseline_record = next((record for record in _INFERENCE_TIMINGS if record.get("is_baseline")), _INFERENCE_TIMINGS[0])
    baseline_elapsed = baseline_record.get("elapsed", 0.0) or 0.0
    for record in _INFERENCE_TIMINGS:
        elapsed = record.get("elapsed", 0.0) or 0.0
        pixels = record.get("pixels", 0)
        label = record.get("label", "run")
        backend = record.get("backend", "unknown")
        throughput = pixels / elapsed if elapsed > 0 else 0.0
        if record is baseline_record:
            delta_label = "(baseline)"
        elif baseline_elapsed > 0:
            delta_label = f"({((baseline_elapsed - elapsed) / baseline_elapsed) * 100.0:+.1f}% latency)"
        else:
            delta_label = ""
        terminalreporter.line(
            f"{label} [{backend}]: {elapsed * 1000:.2f} ms, {throughput:,.0f} px/s {delta_label}".rstrip()
        )
