import pytest


def test_loggable_writes_history_entry():
    from longorwide.config import LOG_PATH
    from longorwide.infrastructure.logging import loggable

    @loggable
    def add_numbers(a, b=2):
        """Add two numbers."""
        return {"total": a + b}

    assert add_numbers(1) == {"total": 3}

    text = LOG_PATH.read_text(encoding="utf-8")
    entry = text.split("\tFunction: add_numbers()")[-1]
    assert "Description: Add two numbers." in entry
    assert "'b': '2'" in entry
    assert "'total': '3'" in entry


def test_loggable_records_and_reraises_errors():
    from longorwide.config import LOG_PATH
    from longorwide.infrastructure.logging import loggable

    @loggable
    def always_fails():
        """Fail on purpose."""
        raise ValueError("broken input")

    with pytest.raises(ValueError, match="broken input"):
        always_fails()

    assert "<raised ValueError: broken input>" in LOG_PATH.read_text(encoding="utf-8")


def test_fmt_summarises_large_values():
    import pandas as pd
    from longorwide.infrastructure.logging import _fmt

    assert _fmt(pd.DataFrame({"a": [1, 2, 3]})) == "<Array-like shape=(3, 1)>"
    assert _fmt(list(range(50))) == "<list len=50>"
    assert _fmt("x" * 200).endswith("...")
