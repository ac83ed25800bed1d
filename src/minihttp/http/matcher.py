"""
=============================================================================
PATH MATCHER
=============================================================================

Compiles a route pattern into an anchored regular expression, once, at
registration time.

=============================================================================
PATTERN COMPILATION
=============================================================================

    Input:  "/files/:fileName"

    Step 1: Split by "/"
            ["", "files", ":fileName"]

    Step 2: Drop empty segments, translate the rest
            "files"      → /files                   (literal, escaped)
            ":fileName"  → /(?P<fileName>.+)        (named capture)

    Step 3: Anchor both ends
            ^/files/(?P<fileName>.+)$

A capture matches ANY non-empty text, slashes included, so
"/files/sub/name.txt" yields {"fileName": "sub/name.txt"}.

Dropping empty segments means "//a" and "/a" compile to the same regex.
A pattern with no segments at all ("/") matches the root path only.

=============================================================================
WHAT IS NOT DONE
=============================================================================

    - no prefix matching ("/a" does not match "/a/b")
    - no trailing-slash normalization ("/a" does not match "/a/")
    - no URL decoding and no query-string stripping

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, List
import re


ROOT_REGEX = "^/$"


@dataclass(frozen=True)
class PathMatcher:
    """
    Compiled form of a route pattern.

    Immutable; build one with PathMatcher.compile(pattern).

    Attributes:
        pattern: The pattern source ("/echo/:str").
        regex: The compiled, anchored regex.
        param_names: Capture names in pattern order.
    """

    pattern: str
    regex: re.Pattern = field(repr=False)
    param_names: tuple[str, ...] = ()

    @classmethod
    def compile(cls, pattern: str) -> "PathMatcher":
        """
        Compile a pattern.

        Raises:
            ValueError: A capture name is not an identifier or is repeated.
        """
        param_names: List[str] = []
        regex_parts: List[str] = []

        for segment in pattern.split("/"):
            if not segment:
                continue

            if segment.startswith(":"):
                name = segment[1:]
                if not name.isidentifier():
                    raise ValueError(f"Invalid parameter name {name!r} in pattern {pattern!r}")
                if name in param_names:
                    raise ValueError(f"Duplicate parameter {name!r} in pattern {pattern!r}")
                param_names.append(name)
                regex_parts.append(f"/(?P<{name}>.+)")
            else:
                regex_parts.append("/" + re.escape(segment))

        source = "^" + "".join(regex_parts) + "$" if regex_parts else ROOT_REGEX
        return cls(
            pattern=pattern,
            regex=re.compile(source),
            param_names=tuple(param_names),
        )

    @property
    def is_static(self) -> bool:
        """True when the pattern has no captures."""
        return not self.param_names

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """
        Test a concrete path.

        Returns:
            Captured parameters (empty dict for literal patterns) on a
            full match, None otherwise.
        """
        match = self.regex.fullmatch(path)
        if match is None:
            return None
        return match.groupdict()
