"""
Completion catalog and result models

Defines the structure of the static completion catalog (loaded from
data/completions.yaml) and the items returned for a cursor position.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional


class CompletionCategory(Enum):
    """
    Catalog sections, each bound to one trigger context
    """
    TYPE = "types"                  # after $type.
    COLOR = "colors"                # after $c.
    CONTEXT_VARIABLE = "variables"  # after $
    META = "meta"                   # after _
    NODE = "nodes"                  # after (
    VALUE_TYPE = "value_types"      # default context
    SHORTHAND = "shorthand"         # default context


class CompletionKind(Enum):
    """
    Item kinds, numbered as the Language Server Protocol numbers them
    """
    FUNCTION = 3
    VARIABLE = 6
    PROPERTY = 10
    KEYWORD = 14
    SNIPPET = 15
    COLOR = 16
    ENUM_MEMBER = 20
    STRUCT = 22
    TYPE_PARAMETER = 25


@dataclass
class CompletionSpec:
    """
    One static catalog entry

    Attributes:
        label: Text shown in the completion list
        category: Catalog section
        kind: Item kind
        detail: Short description
        insert: Text inserted on accept (snippet syntax if snippet is True)
        snippet: Whether insert uses $1/${1:default} placeholders
        filter: Text the editor filters against (defaults to label)
        retrigger: Ask the editor to reopen completion after accept
    """
    label: str
    category: CompletionCategory
    kind: CompletionKind
    detail: str = ""
    insert: Optional[str] = None
    snippet: bool = False
    filter: Optional[str] = None
    retrigger: bool = False


@dataclass
class CompletionItem:
    """
    A completion offered at a concrete cursor position

    Attributes:
        label: Text shown in the completion list
        kind: Item kind
        insert_text: Text inserted on accept
        detail: Short description
        replace_start: Column where the replaced prefix begins; the
                       replaced span ends at the cursor. None lets the
                       editor pick its word range.
        filter_text: Text the editor filters against
        is_snippet: Whether insert_text uses snippet syntax
        retrigger: Ask the editor to reopen completion after accept
    """
    label: str
    kind: CompletionKind
    insert_text: str
    detail: str = ""
    replace_start: Optional[int] = None
    filter_text: Optional[str] = None
    is_snippet: bool = False
    retrigger: bool = False
