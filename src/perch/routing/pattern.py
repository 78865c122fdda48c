"""Path template compilation.

A route template is literal text plus ``{name}`` placeholders::

    "/users"              -> matches "/users", "/users/", "/users?x=1"
    "/users/{id}"         -> captures ("42",) from "/users/42"
    "/a/{x}/b/{y}"        -> captures in declaration order

Compiled patterns are cached per template string for the whole process.
Identical templates on different routes compile once.
"""

import re
from dataclasses import dataclass

# Placeholder names are word characters; captured values also allow "-"
PLACEHOLDER = re.compile(r"\{([a-zA-Z0-9_]+)\}")
PARAM_PATTERN = r"([a-zA-Z0-9_-]+)"

# template -> CompiledPath; a racing miss only recompiles the same value
_CACHE: dict[str, "CompiledPath"] = {}


@dataclass(frozen=True, slots=True)
class CompiledPath:
    """A compiled route template."""

    template: str
    regex: re.Pattern[str]
    param_names: tuple[str, ...]

    def test(self, path: str) -> tuple[bool, tuple[str, ...]]:
        """Match *path* and return ``(matched, params)``.

        ``params`` holds one captured string per placeholder, in the
        order the placeholders appear in the template.
        """
        m = self.regex.match(path)
        if m is None:
            return False, ()
        return True, m.groups()[: len(self.param_names)]


def _to_regex(template: str) -> str:
    parts = ["^"]
    pos = 0
    for m in PLACEHOLDER.finditer(template):
        parts.append(re.escape(template[pos : m.start()]))
        parts.append(PARAM_PATTERN)
        pos = m.end()
    parts.append(re.escape(template[pos:]))
    # Optional trailing slash, optional ignored query string
    parts.append(r"/?(?:\?.*)?$")
    return "".join(parts)


def compile_path(template: str) -> CompiledPath:
    """Compile *template*, reusing the cached result when there is one."""
    compiled = _CACHE.get(template)
    if compiled is None:
        compiled = CompiledPath(
            template=template,
            regex=re.compile(_to_regex(template)),
            param_names=tuple(PLACEHOLDER.findall(template)),
        )
        _CACHE[template] = compiled
    return compiled


def cache_size() -> int:
    """Number of distinct templates compiled so far."""
    return len(_CACHE)


def clear_cache() -> None:
    """Drop every compiled template."""
    _CACHE.clear()
