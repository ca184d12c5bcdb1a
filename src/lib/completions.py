"""
Completion surface for zen-nix documents

Static suggestion lists chosen by the characters just before the cursor.
The lists live in data/completions.yaml; the only dynamic content is the
set of declared variable names (for "$v.") and the option list of the
enum declaration being assigned.

Contexts, first match wins:
    $type.<partial>   type names
    $v.<partial>      names declared with _let in the document
    $c.<partial>      theme colours
    $<partial>        context variables
    _<partial>        metadata blocks, _let, action hooks
    (<partial>        structural nodes
    _let x : enum [ "a" "b" ] = <cursor>   the enum's options
    anything else     value types and the "! {" shorthand
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..models.completions import CompletionCategory, CompletionItem, CompletionKind, CompletionSpec
from .log import LOG


DEFAULT_CATALOG = Path(__file__).resolve().parent.parent / "data" / "completions.yaml"

TRIGGER_CHARACTERS = ["_", "$", "(", ".", '"']

_TYPE_CONTEXT_RE = re.compile(r"\$type\.[a-zA-Z0-9_-]*$")
_VAR_CONTEXT_RE = re.compile(r"\$v\.([a-zA-Z0-9_-]*)$")
_COLOR_CONTEXT_RE = re.compile(r"\$c\.([a-zA-Z0-9_-]*)$")
_DOLLAR_CONTEXT_RE = re.compile(r"\$[a-zA-Z0-9_-]*$")
_UNDERSCORE_CONTEXT_RE = re.compile(r"_[a-zA-Z0-9_-]*$")
_PAREN_CONTEXT_RE = re.compile(r"\([a-zA-Z0-9_-]*$")
_ENUM_CONTEXT_RE = re.compile(
    r"_let\s+[a-zA-Z0-9_-]+\s*:\s*(?:\$type\.)?enum\s*\[([^;]*?)\]\s*=[^;]*$"
)
_ENUM_PARTIAL_RE = re.compile(r'"?[^"\s;]*$')
_DECLARED_NAME_RE = re.compile(r"_let\s+([a-zA-Z0-9_-]+)\s*:")
_ENUM_OPTION_RE = re.compile(r'"([^"]+)"')


class CatalogError(Exception):
    """Raised when the completion catalog is missing or malformed"""
    pass


class CompletionRegistry:
    """
    Registry of static completion entries

    Loads the YAML catalog once and answers completion requests for a
    cursor position in a document.
    """

    def __init__(self, catalog_path: Optional[Path] = None):
        """
        Load the completion catalog.

        Args:
            catalog_path: YAML catalog to load; defaults to the packaged one

        Raises:
            CatalogError: If the catalog does not exist or an entry is invalid
        """
        self.catalog_path = Path(catalog_path) if catalog_path else DEFAULT_CATALOG
        self.specs: Dict[CompletionCategory, List[CompletionSpec]] = {}
        self.catalog_load()

    def catalog_load(self) -> None:
        """Read and validate the catalog file"""
        if not self.catalog_path.exists():
            raise CatalogError(f"Completion catalog not found: {self.catalog_path}")

        with open(self.catalog_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise CatalogError(f"Completion catalog must be a mapping: {self.catalog_path}")

        for category in CompletionCategory:
            entries = data.get(category.value) or []
            self.specs[category] = [self.spec_fromEntry(entry, category) for entry in entries]

        LOG(f"Loaded completion catalog: {sum(len(s) for s in self.specs.values())} entries", level=3)

    @staticmethod
    def spec_fromEntry(entry: Dict[str, Any], category: CompletionCategory) -> CompletionSpec:
        """
        Build a CompletionSpec from one catalog entry

        Raises:
            CatalogError: If label or kind is missing or kind is unknown
        """
        if not isinstance(entry, dict) or "label" not in entry or "kind" not in entry:
            raise CatalogError(f"Invalid {category.value} entry: {entry!r}")
        try:
            kind = CompletionKind[str(entry["kind"]).upper()]
        except KeyError:
            raise CatalogError(f"Unknown completion kind '{entry['kind']}' for '{entry['label']}'")

        return CompletionSpec(
            label=str(entry["label"]),
            category=category,
            kind=kind,
            detail=entry.get("detail", ""),
            insert=entry.get("insert"),
            snippet=bool(entry.get("snippet", False)),
            filter=entry.get("filter"),
            retrigger=bool(entry.get("retrigger", False)),
        )

    def specs_listByCategory(self, category: CompletionCategory) -> List[CompletionSpec]:
        """Get all catalog entries in a category"""
        return list(self.specs.get(category, []))

    def completions_get(self, text: str, line: int, character: int) -> List[CompletionItem]:
        """
        Compute completions for a cursor position

        Args:
            text: Full document text
            line: Zero-based cursor line
            character: Zero-based cursor column

        Returns:
            Completion items for the detected context

        Example:
            For a line "x = $c.pr" with the cursor at its end, returns the
            colour entries with replace_start pointing at "pr".
        """
        lines = text.split("\n")
        current = lines[line] if 0 <= line < len(lines) else ""
        prefix = current[:character]

        match = _TYPE_CONTEXT_RE.search(prefix)
        if match:
            return self.items_fromCategory(CompletionCategory.TYPE, character - len(match.group(0)))

        match = _VAR_CONTEXT_RE.search(prefix)
        if match:
            start = character - len(match.group(1))
            return [
                CompletionItem(
                    label=name,
                    kind=CompletionKind.VARIABLE,
                    insert_text=name,
                    detail="ZenOS Internal Variable",
                    replace_start=start,
                )
                for name in self.declaredNames_find(text)
            ]

        match = _COLOR_CONTEXT_RE.search(prefix)
        if match:
            return self.items_fromCategory(CompletionCategory.COLOR, character - len(match.group(1)))

        for regex, category in (
            (_DOLLAR_CONTEXT_RE, CompletionCategory.CONTEXT_VARIABLE),
            (_UNDERSCORE_CONTEXT_RE, CompletionCategory.META),
            (_PAREN_CONTEXT_RE, CompletionCategory.NODE),
        ):
            match = regex.search(prefix)
            if match:
                return self.items_fromCategory(category, character - len(match.group(0)))

        offset = sum(len(previous) + 1 for previous in lines[:line]) + len(prefix)
        options = self.enumOptions_find(text[:offset])
        if options:
            partial = _ENUM_PARTIAL_RE.search(prefix)
            start = character - len(partial.group(0)) if partial else character
            return [
                CompletionItem(
                    label=option,
                    kind=CompletionKind.ENUM_MEMBER,
                    insert_text=option,
                    detail="ZenOS Enum Option",
                    replace_start=start,
                )
                for option in options
            ]

        return (
            self.items_fromCategory(CompletionCategory.VALUE_TYPE, None)
            + self.items_fromCategory(CompletionCategory.SHORTHAND, None)
        )

    def items_fromCategory(
        self, category: CompletionCategory, replace_start: Optional[int]
    ) -> List[CompletionItem]:
        """Turn every catalog entry of a category into an item"""
        return [
            CompletionItem(
                label=spec.label,
                kind=spec.kind,
                insert_text=spec.insert if spec.insert is not None else spec.label,
                detail=spec.detail,
                replace_start=None if replace_start is None else max(0, replace_start),
                filter_text=spec.filter,
                is_snippet=spec.snippet,
                retrigger=spec.retrigger,
            )
            for spec in self.specs.get(category, [])
        ]

    @staticmethod
    def declaredNames_find(text: str) -> List[str]:
        """Names declared with _let, in document order, without duplicates"""
        names: List[str] = []
        for name in _DECLARED_NAME_RE.findall(text):
            if name not in names:
                names.append(name)
        return names

    @staticmethod
    def enumOptions_find(text_before_cursor: str) -> List[str]:
        """
        Options of the enum declaration whose value is being typed

        Returns:
            The quoted options, or an empty list if the cursor is not on the
            value side of an unterminated enum declaration
        """
        match = _ENUM_CONTEXT_RE.search(text_before_cursor)
        if not match:
            return []
        return _ENUM_OPTION_RE.findall(match.group(1))
