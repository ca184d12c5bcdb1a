"""
Custom Pygments lexer for zen-nix syntax highlighting

Highlights the dialect constructs on top of plain Nix when zennix renders
source lines in its reports.

Token types:
- Comment.Single: # comments
- String.Double / String.Heredoc: "..." and ''...'' strings
- Name.Variable.Magic: context variables ($v.x, $c.primary, $type.int)
- Keyword.Declaration: _let, _meta and the action hooks
- Name.Tag: structural node keywords inside parentheses
- Keyword: Nix control keywords
- Operator: the "!" immediate-action marker and = ; :
"""

from pygments.lexer import RegexLexer, bygroups, words
from pygments.token import (
    Text,
    Whitespace,
    Punctuation,
    Name,
    String,
    Keyword,
    Comment,
    Number,
    Operator,
)


class ZenNixLexer(RegexLexer):
    """
    Lexer for the zen-nix dialect

    Example:
        _let mode : $type.enum [ "a" "b" ] = "a";

    Tokens:
        _let → Keyword.Declaration
        mode → Name.Variable
        $type.enum → Name.Variable.Magic
        "a" → String.Double
    """

    name = 'Zen-Nix'
    aliases = ['zen-nix', 'zennix']
    filenames = ['*.zen.nix']

    tokens = {
        'root': [
            (r'\s+', Whitespace),
            (r'#.*?$', Comment.Single),

            # Strings
            (r"''", String.Heredoc, 'rawstring'),
            (r'"', String.Double, 'string'),

            # Typed declaration head
            (r'(_let)(\s+)([a-zA-Z_][\w-]*)',
             bygroups(Keyword.Declaration, Whitespace, Name.Variable)),

            # Metadata and action hooks
            (words(('_meta', '_action', '_saction', '_uaction'), suffix=r'\b'),
             Keyword.Declaration),

            # Context variables
            (r'\$[a-zA-Z0-9_-]+(\.[a-zA-Z0-9_-]+)*', Name.Variable.Magic),

            # Structural nodes
            (r'(\()(\s*)(zmdl|alias|programs|packages|freeform|group|import|needs)\b',
             bygroups(Punctuation, Whitespace, Name.Tag)),

            # Immediate action block
            (r'!(?=\s*\{)', Operator),

            (words(('let', 'in', 'with', 'inherit', 'if', 'then', 'else', 'rec', 'assert', 'or'),
                   suffix=r'\b'), Keyword),
            (words(('true', 'false', 'null'), suffix=r'\b'), Name.Constant),

            (r'-?\d+\.\d*|-?\.\d+', Number.Float),
            (r'-?\d+', Number.Integer),

            (r'[a-zA-Z_][\w\'-]*', Name),
            (r'[{}\[\]();,.:]', Punctuation),
            (r'==|!=|&&|\|\||->|//|\+\+|[=+\-*/<>!?@]', Operator),
            (r'.', Text),
        ],

        'string': [
            (r'\\.', String.Escape),
            (r'"', String.Double, '#pop'),
            (r'\$\{', String.Interpol),
            (r'[^"\\$]+', String.Double),
            (r'\$', String.Double),
        ],

        'rawstring': [
            (r"'''|''\$|''\\.", String.Escape),
            (r"''", String.Heredoc, '#pop'),
            (r'\$\{', String.Interpol),
            (r"[^'$]+", String.Heredoc),
            (r"['$]", String.Heredoc),
        ],
    }


def get_lexer() -> ZenNixLexer:
    """
    Get the ZenNixLexer instance

    Returns:
        ZenNixLexer instance ready for use with Pygments
    """
    return ZenNixLexer()
