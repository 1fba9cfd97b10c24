import re


_NON_IDENTIFIER_CHAR = re.compile(r"[^a-z0-9_]")


def clean_column_name(raw_name: bytes | str) -> str:
    if isinstance(raw_name, bytes):
        raw_name = raw_name.decode("utf-8", errors="replace")
    cleaned = _NON_IDENTIFIER_CHAR.sub("_", raw_name.lower())
    return cleaned or "_"


class Uniquifier:
    """Turns header fields into lowercase identifier-like names that are unique within a run.

    Only first-order collisions are handled: a suffixed name such as ``a_2`` is not
    tracked, so a later raw column literally named ``a_2`` is returned unchanged.
    """

    def __init__(self) -> None:
        self._seen: dict[str, int] = {}

    def unique_id_for(self, raw_name: bytes | str) -> str:
        cleaned = clean_column_name(raw_name)
        count = self._seen.get(cleaned, 0)
        self._seen[cleaned] = count + 1
        if count == 0:
            return cleaned
        return f"{cleaned}_{count + 1}"
