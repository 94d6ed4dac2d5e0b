"""Text transformations for framework config files.

Config files are arbitrary JavaScript/TypeScript modules, so nothing here is a
real parser. The Next.js merge reads the exported object literal as plain
data when it can, and otherwise injects fields textually. Callers keep a
full snapshot of the original file before writing any of this back.
"""

import re
from typing import Any, Dict, Iterator, List, Match, Optional, Tuple

from .utils import print_debug, print_warning

_IDENTIFIER_RE = re.compile(r'[A-Za-z_$][\w$]*$')
_NUMBER_RE = re.compile(r'-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_EXPORT_RE = re.compile(r'module\.exports\s*=\s*|export\s+default\s+')
_ESCAPE_RE = re.compile(r'\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])')
_SIMPLE_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v', '0': '\0'}
_LINE_TERMINATORS = ('\n', '\r', '\r\n', '\u2028', '\u2029')
_STRING_LITERAL = r'([\'"`])[^\'"`]*\1'
_BOOLEAN_LITERAL = r'(?:true|false)\b'


def js_string(value: str) -> str:
    """Render a single-quoted JS string literal"""
    escaped = (
        value.replace('\\', '\\\\').replace("'", "\\'")
        .replace('\n', '\\n').replace('\r', '\\r')
    )
    return f"'{escaped}'"


def _unescape(match: Match[str]) -> str:
    sequence = match.group(1)
    if sequence.startswith('u{'):
        return chr(int(sequence[2:-1], 16))
    if len(sequence) > 1 and sequence[0] in 'ux':
        return chr(int(sequence[1:], 16))
    if sequence in _LINE_TERMINATORS:
        return ''
    if sequence in 'ux' or sequence in '123456789':
        raise ValueError(f"Unsupported escape sequence '\\{sequence}'")
    return _SIMPLE_ESCAPES.get(sequence, sequence)


# ---------------------------------------------------------------------------
# Scanning helpers
# ---------------------------------------------------------------------------

def _skip_string(text: str, index: int) -> int:
    """Return the index just past the string literal starting at index"""
    quote = text[index]
    index += 1
    while index < len(text):
        char = text[index]
        if char == '\\':
            index += 2
            continue
        if char == quote:
            return index + 1
        index += 1
    return len(text)


def _skip_comment(text: str, index: int) -> Optional[int]:
    """Return the index past a comment starting at index, or None"""
    if text.startswith('//', index):
        end = text.find('\n', index)
        return len(text) if end == -1 else end + 1
    if text.startswith('/*', index):
        end = text.find('*/', index + 2)
        return len(text) if end == -1 else end + 2
    return None


def find_matching_bracket(text: str, open_index: int) -> int:
    """Index of the bracket closing the one at open_index, or -1.

    Strings and comments are skipped; regex literals are not understood.
    """
    pairs = {'{': '}', '[': ']', '(': ')'}
    stack = []
    index = open_index
    while index < len(text):
        char = text[index]
        if char in '\'"`':
            index = _skip_string(text, index)
            continue
        after_comment = _skip_comment(text, index)
        if after_comment is not None:
            index = after_comment
            continue
        if char in pairs:
            stack.append(pairs[char])
        elif char in ')]}':
            if not stack or stack.pop() != char:
                return -1
            if not stack:
                return index
        index += 1
    return -1


def _code_tokens(text: str, span: Tuple[int, int]) -> Iterator[Tuple[int, int]]:
    """(index, depth) of each code character strictly inside span.

    Whitespace and comments are skipped and a string yields only its opening
    quote. Depth 0 is the object itself; brackets report their outer depth.
    """
    open_index, close_index = span
    depth = 0
    index = open_index + 1
    while index < close_index:
        char = text[index]
        if char in '\'"`':
            yield index, depth
            index = _skip_string(text, index)
            continue
        after_comment = _skip_comment(text, index)
        if after_comment is not None:
            index = after_comment
            continue
        if char in ')]}':
            depth -= 1
        if not char.isspace():
            yield index, depth
        if char in '{[(':
            depth += 1
        index += 1


def find_top_level_key(text: str, span: Tuple[int, int], key: str,
                       value_pattern: str) -> Optional[Match[str]]:
    """Match `key: <value_pattern>` written directly inside the object at span"""
    pattern = re.compile(rf'{re.escape(key)}\s*:\s*{value_pattern}')
    previous = '{'
    for index, depth in _code_tokens(text, span):
        if depth == 0 and previous in '{,':
            match = pattern.match(text, index)
            if match:
                return match
        previous = text[index]
    return None


def replace_top_level_key(text: str, span: Tuple[int, int], key: str, value_pattern: str,
                          replacement: str) -> Optional[Tuple[str, Tuple[int, int]]]:
    """Replace a top-level entry; returns the new text and the shifted span"""
    match = find_top_level_key(text, span, key, value_pattern)
    if match is None:
        return None
    shift = len(replacement) - (match.end() - match.start())
    updated = text[:match.start()] + replacement + text[match.end():]
    return updated, (span[0], span[1] + shift)


def inject_before_close(text: str, span: Tuple[int, int], entries: List[str], indent: str = '  ') -> str:
    """Insert object entries immediately before the closing brace"""
    if not entries:
        return text

    open_index, close_index = span
    last = open_index
    for index, _depth in _code_tokens(text, span):
        last = _skip_string(text, index) - 1 if text[index] in '\'"`' else index

    # Comma goes after the last real token, ahead of any trailing comment
    separator = '' if text[last] in '{,' else ','
    trailing = text[last + 1:close_index].rstrip()
    body = ',\n'.join(f"{indent}{entry}" for entry in entries)
    return f"{text[:last + 1]}{separator}{trailing}\n{body}\n{text[close_index:]}"


# ---------------------------------------------------------------------------
# Plain-data reader for JS object literals
# ---------------------------------------------------------------------------

class _LiteralReader:
    """Reads a JS object literal holding only plain data.

    Anything that would need evaluation (identifiers, calls, functions,
    spreads, template substitutions) raises ValueError.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def read(self) -> Any:
        value = self._value()
        self._skip_blank()
        if self.pos != len(self.text):
            raise ValueError(f"Unexpected content at offset {self.pos}")
        return value

    def _skip_blank(self):
        while self.pos < len(self.text):
            if self.text[self.pos].isspace():
                self.pos += 1
                continue
            after_comment = _skip_comment(self.text, self.pos)
            if after_comment is None:
                return
            self.pos = after_comment

    def _peek(self) -> str:
        self._skip_blank()
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def _expect(self, char: str):
        if self._peek() != char:
            raise ValueError(f"Expected '{char}' at offset {self.pos}")
        self.pos += 1

    def _value(self) -> Any:
        char = self._peek()
        if char == '{':
            return self._object()
        if char == '[':
            return self._array()
        if char in '\'"`':
            return self._string()

        number = _NUMBER_RE.match(self.text, self.pos)
        if number:
            self.pos = number.end()
            literal = number.group(0)
            return float(literal) if any(c in literal for c in '.eE') else int(literal)

        word = re.match(r'[A-Za-z_$][\w$]*', self.text[self.pos:])
        if word and word.group(0) in ('true', 'false', 'null'):
            self.pos += len(word.group(0))
            return {'true': True, 'false': False, 'null': None}[word.group(0)]

        raise ValueError(f"Not a plain value at offset {self.pos}")

    def _string(self) -> str:
        start = self.pos
        end = _skip_string(self.text, start)
        raw = self.text[start + 1:end - 1]
        if self.text[start] == '`' and '${' in raw:
            raise ValueError("Template substitution in config value")
        self.pos = end
        return _ESCAPE_RE.sub(_unescape, raw)

    def _key(self) -> str:
        char = self._peek()
        if char in '\'"':
            return self._string()
        match = re.match(r'[A-Za-z_$][\w$]*|\d+', self.text[self.pos:])
        if not match:
            raise ValueError(f"Unsupported object key at offset {self.pos}")
        self.pos += len(match.group(0))
        return match.group(0)

    def _object(self) -> Dict[str, Any]:
        self._expect('{')
        result: Dict[str, Any] = {}
        while self._peek() != '}':
            key = self._key()
            self._expect(':')
            result[key] = self._value()
            if self._peek() == ',':
                self.pos += 1
            elif self._peek() != '}':
                raise ValueError(f"Expected ',' or '}}' at offset {self.pos}")
        self.pos += 1
        return result

    def _array(self) -> List[Any]:
        self._expect('[')
        result = []
        while self._peek() != ']':
            result.append(self._value())
            if self._peek() == ',':
                self.pos += 1
            elif self._peek() != ']':
                raise ValueError(f"Expected ',' or ']' at offset {self.pos}")
        self.pos += 1
        return result


def read_js_literal(text: str) -> Any:
    return _LiteralReader(text).read()


def render_js(value: Any, indent: int = 0) -> str:
    """Render plain data as a JS literal (single quotes, bare keys)"""
    pad = '  ' * (indent + 1)
    if isinstance(value, dict):
        if not value:
            return '{}'
        lines = []
        for key, item in value.items():
            rendered_key = key if _IDENTIFIER_RE.match(key) else js_string(key)
            lines.append(f"{pad}{rendered_key}: {render_js(item, indent + 1)}")
        return '{\n' + ',\n'.join(lines) + '\n' + '  ' * indent + '}'
    if isinstance(value, list):
        return '[' + ', '.join(render_js(item, indent) for item in value) + ']'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    if isinstance(value, (int, float)):
        return repr(value)
    return js_string(str(value))


# ---------------------------------------------------------------------------
# Locating the configuration object
# ---------------------------------------------------------------------------

def _object_span_from(text: str, brace_index: int) -> Optional[Tuple[int, int]]:
    close = find_matching_bracket(text, brace_index)
    return (brace_index, close) if close != -1 else None


def _declared_object(text: str, name: str) -> Optional[Tuple[int, int]]:
    """Span of the object literal assigned to `const|let|var name`"""
    declaration = re.search(
        rf'(?:const|let|var)\s+{re.escape(name)}\s*(?::[^=]+)?=\s*\{{', text
    )
    if not declaration:
        return None
    return _object_span_from(text, declaration.end() - 1)


def locate_exported_object(text: str) -> Optional[Tuple[int, int]]:
    """Span (open, close) of the exported object literal, if plainly exported"""
    export = _EXPORT_RE.search(text)
    if not export:
        return None

    rest = text[export.end():]
    if rest.startswith('{'):
        return _object_span_from(text, export.end())

    identifier = re.match(r'([A-Za-z_$][\w$]*)\s*(?:;|$|\n)', rest)
    if identifier:
        return _declared_object(text, identifier.group(1))
    return None


def locate_config_object(text: str) -> Optional[Tuple[int, int]]:
    """Best-effort span of the object that holds the configuration"""
    span = locate_exported_object(text)
    if span:
        return span

    export = _EXPORT_RE.search(text)
    if not export:
        return None

    # Wrapped export, e.g. module.exports = withPlugins({ ... })
    call_arg = re.compile(r'\(\s*\{').search(text, export.end())
    if call_arg and '=>' not in text[export.end():call_arg.start()]:
        return _object_span_from(text, call_arg.end() - 1)

    # Function export: inject into the returned object
    returned = re.compile(r'return\s*\{').search(text, export.end())
    if returned:
        return _object_span_from(text, returned.end() - 1)

    return None


# ---------------------------------------------------------------------------
# Framework config generators
# ---------------------------------------------------------------------------

class ConfigParser:
    """Generates and modifies framework config file contents"""

    def next_deploy_settings(self, base_path: str) -> Dict[str, Any]:
        return {
            'output': 'export',
            'basePath': base_path,
            'assetPrefix': base_path,
            'trailingSlash': True,
            'images': {'unoptimized': True},
        }

    def generate_next_config(self, base_path: str, original: Optional[str] = None) -> str:
        """Next.js config with static export under base_path"""
        if original is not None:
            return self.modify_next_config(original, base_path)

        config = render_js(self.next_deploy_settings(base_path))
        return (
            "/** @type {import('next').NextConfig} */\n"
            f"const nextConfig = {config};\n"
            "\n"
            "module.exports = nextConfig;\n"
        )

    def modify_next_config(self, original: str, base_path: str) -> str:
        """Merge deployment settings into an existing Next.js config"""
        span = locate_exported_object(original)
        if span is None:
            print_debug("Next.js config does not export a plain object, using textual injection")
            return self.fallback_next_config(original, base_path)

        start, end = span
        try:
            config = read_js_literal(original[start:end + 1])
        except ValueError as e:
            print_debug(f"Could not read Next.js config as plain data ({e}), using textual injection")
            return self.fallback_next_config(original, base_path)

        merged = self.merge_next_config(config, base_path)
        return original[:start] + render_js(merged) + original[end + 1:]

    def merge_next_config(self, config: Dict[str, Any], base_path: str) -> Dict[str, Any]:
        settings = self.next_deploy_settings(base_path)
        images = config.get('images')
        merged = dict(config)
        merged.update(settings)
        merged['images'] = {**(images if isinstance(images, dict) else {}), 'unoptimized': True}
        return merged

    def fallback_next_config(self, original: str, base_path: str) -> str:
        """Conservative string-based injection for configs that can't be read"""
        content = original
        span = locate_config_object(content)
        if span is None:
            print_warning("Could not locate the Next.js config object, using a generated config")
            return self.generate_next_config(base_path)

        fields = [
            ('output', _STRING_LITERAL, f"output: {js_string('export')}"),
            ('basePath', _STRING_LITERAL, f"basePath: {js_string(base_path)}"),
            ('assetPrefix', _STRING_LITERAL, f"assetPrefix: {js_string(base_path)}"),
            ('trailingSlash', _BOOLEAN_LITERAL, 'trailingSlash: true'),
        ]
        missing = []
        for key, value_pattern, entry in fields:
            replaced = replace_top_level_key(content, span, key, value_pattern, entry)
            if replaced is None:
                missing.append(entry)
            else:
                content, span = replaced

        images = find_top_level_key(content, span, 'images', r'\{')
        images_span = _object_span_from(content, images.end() - 1) if images else None
        if images_span is None:
            missing.append('images: { unoptimized: true }')
        else:
            replaced = replace_top_level_key(
                content, images_span, 'unoptimized', _BOOLEAN_LITERAL, 'unoptimized: true'
            )
            if replaced is None:
                updated = inject_before_close(content, images_span, ['unoptimized: true'], indent='    ')
            else:
                updated = replaced[0]
            span = (span[0], span[1] + len(updated) - len(content))
            content = updated

        return inject_before_close(content, span, missing)

    def generate_vite_config(self, base_path: str, is_typescript: bool = False,
                             original: Optional[str] = None) -> str:
        """Vite config with base set to base_path"""
        if original is not None:
            return self.modify_vite_config(original, base_path, is_typescript)

        return (
            "import { defineConfig } from 'vite';\n"
            "\n"
            "export default defineConfig({\n"
            f"  base: {js_string(base_path)},\n"
            "  build: {\n"
            "    outDir: 'dist'\n"
            "  }\n"
            "});\n"
        )

    def modify_vite_config(self, original: str, base_path: str, is_typescript: bool = False) -> str:
        base_entry = f"base: {js_string(base_path)}"
        content = original

        span = self._locate_vite_object(content)
        if span is None:
            bare = re.search(r'(export\s+default\s*|module\.exports\s*=\s*)\{', content)
            if not bare:
                print_warning("Could not locate the Vite config object, using a generated config")
                return self.generate_vite_config(base_path, is_typescript)

            # Wrap a bare object export in defineConfig(...)
            open_index = bare.end() - 1
            close_index = find_matching_bracket(content, open_index)
            if close_index == -1:
                print_warning("Unbalanced Vite config object, using a generated config")
                return self.generate_vite_config(base_path, is_typescript)
            content = (
                content[:bare.start()] + bare.group(1) + 'defineConfig(' +
                content[open_index:close_index + 1] + ')' + content[close_index + 1:]
            )
            span = self._locate_vite_object(content)

        replaced = replace_top_level_key(content, span, 'base', _STRING_LITERAL, base_entry)
        if replaced is None:
            content = inject_before_close(content, span, [base_entry])
        else:
            content = replaced[0]

        return self._ensure_define_config_import(content, is_typescript)

    def _locate_vite_object(self, text: str) -> Optional[Tuple[int, int]]:
        patterns = [
            r'defineConfig\(\s*\{',
            r'defineConfig\(\s*(?:async\s*)?(?:\([^)]*\)|[\w$]+)\s*=>\s*\(\s*\{',
        ]
        for pattern in patterns:
            match = re.search(pattern, text)
            if match:
                return _object_span_from(text, match.end() - 1)

        call = re.search(r'defineConfig\(', text)
        if call:
            returned = re.compile(r'return\s*\{').search(text, call.end())
            if returned:
                return _object_span_from(text, returned.end() - 1)

        # Exported identifier bound to an object literal; a bare exported
        # object is left for the caller to wrap in defineConfig(...)
        export = _EXPORT_RE.search(text)
        if export and not text[export.end():].startswith('{'):
            return locate_exported_object(text)
        return None

    def _ensure_define_config_import(self, content: str, is_typescript: bool = False) -> str:
        if 'defineConfig(' not in content:
            return content

        imported = (
            re.search(r'import\s*\{[^}]*\bdefineConfig\b[^}]*\}\s*from', content)
            or re.search(r'\{[^}]*\bdefineConfig\b[^}]*\}\s*=\s*require\(', content)
        )
        if imported:
            return content

        # vite.config.ts is always loaded as an ES module
        is_commonjs = (
            not is_typescript
            and 'module.exports' in content
            and not re.search(r'^\s*import\s', content, re.MULTILINE)
        )
        if is_commonjs:
            return "const { defineConfig } = require('vite');\n" + content
        return "import { defineConfig } from 'vite';\n" + content

    def generate_react_env_config(self, base_path: str, original: str = '') -> str:
        """Set PUBLIC_URL in a Create React App env file"""
        line = f"PUBLIC_URL={base_path}"
        pattern = re.compile(r'^(?:export\s+)?PUBLIC_URL\s*=.*$', re.MULTILINE)
        if pattern.search(original):
            return pattern.sub(lambda _m: line, original, count=1)

        content = original
        if content and not content.endswith('\n'):
            content += '\n'
        return f"{content}{line}\n"
