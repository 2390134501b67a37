import string

_PLAIN = frozenset(string.ascii_lowercase + string.digits)

# Parts are joined with a double underscore. Inside a part an underscore is
# always followed by two hex digits, so the two can never be confused.
_SEPARATOR = "__"


def format_env_var_name(pipeline: str, namespace: str, secret_name: str, secret_key: str) -> str:
    """
    Name of the env var the agent reads a secret value from.

    Lower-case letters and digits are upper-cased, every other character is
    written as _XX per UTF-8 byte. Distinct inputs never share a name, and the
    same inputs always give the same name, so env wiring stays stable across
    compiles.
    """
    return _SEPARATOR.join(_encode(part) for part in (pipeline, namespace, secret_name, secret_key))


def _encode(part: str) -> str:
    chunks = []
    for char in part:
        if char in _PLAIN:
            chunks.append(char.upper())
        else:
            chunks.extend(f"_{b:02X}" for b in char.encode("utf-8"))
    return "".join(chunks)
