from datetime import datetime
import inspect
from functools import wraps
from longorwide.config import LOG_PATH


def _fmt(val):
    """Compact representation to keep history entries readable."""
    try:
        if isinstance(val, str):
            if len(val) > 100:
                return val[:97] + "..."
            return val

        # DataFrames, Series and arrays are summarised by shape
        if hasattr(val, "shape"):
            return f"<Array-like shape={val.shape}>"

        if isinstance(val, (list, dict, tuple, set)) and len(val) > 30:
            return f"<{type(val).__name__} len={len(val)}>"
        return repr(val)
    except Exception:
        return "<unprintable>"


def loggable(func):
    """
    Decorator that appends one history entry per call to `history.log`:
      - function name
      - first line of docstring
      - inputs as passed in
      - return value (dict results are formatted per key)
      - execution time

    Calls that raise are logged with the error message and the exception is re-raised.
    """
    sig = inspect.signature(func)
    doc = inspect.getdoc(func)
    description = doc.strip().split("\n")[0] if doc else "Description not available."

    @wraps(func)
    def wrapper(*args, **kwargs):
        bound = sig.bind(*args, **kwargs)
        bound.apply_defaults()
        inputs_str = {k: _fmt(v) for k, v in bound.arguments.items()}

        start_time = datetime.now()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _write_entry(func.__name__, description, inputs_str, f"<raised {type(e).__name__}: {e}>", start_time)
            raise

        if isinstance(result, dict):
            outputs_str = {k: _fmt(v) for k, v in result.items()}
        else:
            outputs_str = _fmt(result)
        _write_entry(func.__name__, description, inputs_str, outputs_str, start_time)

        return result

    return wrapper


def _write_entry(name, description, inputs_str, outputs_str, start_time) -> None:
    elapsed_time = (datetime.now() - start_time).total_seconds()
    entry = (
        datetime.now().strftime("\n%Y-%m-%d %H:%M:%S:\n")
        + f"\tFunction: {name}()\n"
        + f"\tDescription: {description}\n"
        + f"\tInputs: {inputs_str}\n"
        + f"\tOutputs: {outputs_str}\n"
        + f"\tExecution Time: {elapsed_time:.4f}s\n"
    )
    with LOG_PATH.open("a", encoding="utf-8") as f:
        f.write(entry)
