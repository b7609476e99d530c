"""Order-preserving reader and writer for ``.wakatime.cfg`` style files."""

from __future__ import annotations

from dataclasses import dataclass, field

_COMMENT_PREFIXES = ("#", ";")


@dataclass(slots=True)
class IniEntry:
    """One line of a section. ``key`` is ``None`` for lines passed through untouched."""

    raw: str
    key: str | None = None
    value: str = ""


@dataclass(slots=True)
class IniSection:
    """A run of lines under one header. The preamble has no name and no header."""

    name: str | None
    header: str | None
    entries: list[IniEntry] = field(default_factory=list)


def _section_name(line: str) -> str | None:
    stripped = line.strip()
    if len(stripped) >= 2 and stripped.startswith("[") and stripped.endswith("]"):
        return stripped[1:-1].strip().lower()
    return None


class IniDocument:
    """Ordered mapping of sections to ordered ``key = value`` entries.

    Section names compare case-insensitively, keys compare exactly. A header
    may appear more than once; the occurrences are treated as one section for
    lookups. Every line that is not a recognised key keeps its original text.
    """

    def __init__(self, sections: list[IniSection] | None = None) -> None:
        self._sections = sections or [IniSection(name=None, header=None)]

    @classmethod
    def parse(cls, text: str) -> "IniDocument":
        sections = [IniSection(name=None, header=None)]
        for line in text.splitlines():
            line = line.rstrip("\r\n")
            name = _section_name(line)
            if name is not None:
                sections.append(IniSection(name=name, header=line))
                continue
            current = sections[-1]
            stripped = line.strip()
            if (
                current.name is not None
                and "=" in line
                and not stripped.startswith(_COMMENT_PREFIXES)
            ):
                key, _, value = line.partition("=")
                current.entries.append(IniEntry(raw=line, key=key.strip(), value=value.strip()))
            else:
                current.entries.append(IniEntry(raw=line))
        return cls(sections)

    def _matching(self, section: str) -> list[IniSection]:
        target = section.strip().lower()
        return [item for item in self._sections if item.name == target]

    def sections(self) -> list[str]:
        names: list[str] = []
        for item in self._sections:
            if item.name is not None and item.name not in names:
                names.append(item.name)
        return names

    def get(self, section: str, key: str) -> str | None:
        key = key.strip()
        for item in self._matching(section):
            for entry in item.entries:
                if entry.key == key:
                    return entry.value
        return None

    def set(self, section: str, key: str, value: str) -> None:
        """Store ``value`` so that ``key`` appears exactly once under ``section``.

        Raises ``ValueError`` for anything that would not read back unchanged:
        newlines anywhere, a blank section or key, a key containing ``=`` or
        starting with ``[`` or a comment prefix, and a value with surrounding
        whitespace.
        """

        key = key.strip()
        if "\n" in section or "\n" in key or "\n" in value:
            raise ValueError("Config sections, keys and values must not contain newlines")
        if not section.strip() or not key:
            raise ValueError("Config sections and keys must not be blank")
        if "=" in key or key.startswith(("[", *_COMMENT_PREFIXES)):
            raise ValueError(f"Invalid config key: {key!r}")
        if value != value.strip():
            raise ValueError("Config values must not have leading or trailing whitespace")

        replacement = IniEntry(raw=f"{key} = {value}", key=key, value=value)
        matching = self._matching(section)
        found = False
        for item in matching:
            kept: list[IniEntry] = []
            for entry in item.entries:
                if entry.key == key:
                    if not found:
                        kept.append(replacement)
                        found = True
                    continue
                kept.append(entry)
            item.entries = kept

        if found:
            return

        if matching:
            target = matching[0]
        else:
            target = IniSection(name=section.strip().lower(), header=f"[{section}]")
            self._sections.append(target)

        position = len(target.entries)
        while position > 0 and not target.entries[position - 1].raw.strip():
            position -= 1
        target.entries.insert(position, replacement)

    def render(self) -> str:
        lines: list[str] = []
        for item in self._sections:
            if item.header is not None:
                lines.append(item.header)
            lines.extend(entry.raw for entry in item.entries)
        if not lines:
            return ""
        return "\n".join(lines) + "\n"


__all__ = ["IniDocument", "IniEntry", "IniSection"]
