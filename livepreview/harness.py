"""
livepreview — Render Harness Builder

Wraps processed code into a self-contained HTML document for the sandbox
iframe. React, ReactDOM and Babel standalone come from a CDN and the code is
compiled client-side, so no build step runs anywhere.

Document layout:
  <head>  error channel (plain script), runtime scripts, detected libraries
  <body>  #root, then one text/babel script: prelude, user code, invocation

The error channel is installed before Babel runs so compile errors, render
errors and async rejections all end up in the same card and are posted to the
parent as {source: "livepreview", type: "error", token, message, stack}.
"""

from __future__ import annotations

import json
import logging
import re

from livepreview.libraries import BABEL_SCRIPT, TAILWIND_SCRIPT, detect_libraries, module_globals, react_scripts
from livepreview.resolver import FALLBACK_COMPONENT
from livepreview.syntax import top_level_bindings
from livepreview.types import HarnessOptions, ImportBinding, RenderDocument, TransformationResult

logger = logging.getLogger(__name__)

ERROR_TITLE = "Preview failed to render"

# React primitives generated code tends to use unqualified.
REACT_PRIMITIVES = (
    "useState",
    "useEffect",
    "useContext",
    "useReducer",
    "useMemo",
    "useCallback",
    "useRef",
    "createContext",
    "useLayoutEffect",
    "useImperativeHandle",
    "useId",
    "useTransition",
    "useDeferredValue",
    "forwardRef",
    "memo",
    "lazy",
    "Fragment",
    "Suspense",
)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")
_SCRIPT_CLOSE_RE = re.compile(r"</(script)", re.IGNORECASE)


def _escape_html(text: str) -> str:
    """HTML-escape text for safe embedding."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def _escape_script(code: str) -> str:
    """Keep user code from closing the surrounding <script> element."""
    return _SCRIPT_CLOSE_RE.sub(r"<\\/\1", code)


def _references(code: str, name: str) -> bool:
    return re.search(rf"(?<![\w$.]){re.escape(name)}(?![\w$])", code) is not None


# ---------------------------------------------------------------------------
# Prelude
# ---------------------------------------------------------------------------


def _binding_line(binding: ImportBinding, globals_by_module: dict[str, str]) -> str | None:
    global_name = globals_by_module.get(binding.source)
    if global_name is not None:
        if binding.imported in ("default", "*") and binding.local == global_name:
            return None
        return f"const {binding.local} = __lp.pick({json.dumps(global_name)}, {json.dumps(binding.imported)});"
    if binding.is_relative:
        return None
    return f"const {binding.local} = __lp.stub({json.dumps(binding.local)});"


def build_prelude(code: str, imports: list[ImportBinding], globals_by_module: dict[str, str]) -> str:
    """
    Bind what the stripped imports used to provide.

    Names the code declares itself are left alone, and every name is bound
    at most once.
    """
    declared = top_level_bindings(code)
    bound: set[str] = set()
    lines: list[str] = []

    for binding in imports:
        if binding.local in declared or binding.local in bound:
            continue
        line = _binding_line(binding, globals_by_module)
        if line is None:
            continue
        bound.add(binding.local)
        lines.append(line)

    primitives = [
        name for name in REACT_PRIMITIVES if name not in declared and name not in bound and _references(code, name)
    ]

    prelude: list[str] = []
    if lines:
        prelude.append("const __lp = window.__livepreview;")
        prelude.extend(lines)
    if primitives:
        prelude.append(f"const {{ {', '.join(primitives)} }} = React;")
    return "\n".join(prelude)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

HARNESS_CSS = """
*, *::before, *::after { box-sizing: border-box; }
body { margin: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; }
.lp-loading { padding: 2rem; text-align: center; color: #999; }
.lp-error { padding: 2rem; font-family: ui-monospace, SFMono-Regular, Menlo, monospace; color: #b91c1c; }
.lp-error h2 { margin: 0 0 1rem; font-size: 1.125rem; }
.lp-error pre { margin: 0 0 1rem; padding: 1rem; background: #fef2f2; border-radius: 4px; overflow-x: auto; white-space: pre-wrap; }
.lp-error .lp-stack { color: #7f1d1d; font-size: 0.8125rem; }
.lp-placeholder { padding: 0.75rem; border: 1px dashed #d4d4d8; border-radius: 4px; color: #71717a; font-size: 0.875rem; }
"""

# Plain script, runs before React and Babel. Only the first failure is
# shown and reported.
ERROR_CHANNEL_JS = """
(function () {
  var TOKEN = __TOKEN__;
  var TITLE = __TITLE__;
  var failed = false;

  function card(message, stack) {
    var box = document.createElement('div');
    box.className = 'lp-error';
    var heading = document.createElement('h2');
    heading.textContent = TITLE;
    var body = document.createElement('pre');
    body.textContent = message;
    box.appendChild(heading);
    box.appendChild(body);
    if (stack) {
      var trace = document.createElement('pre');
      trace.className = 'lp-stack';
      trace.textContent = stack;
      box.appendChild(trace);
    }
    return box;
  }

  function fail(error) {
    if (failed) return;
    failed = true;
    var message = error && error.message ? String(error.message) : String(error || 'Unknown error');
    var stack = error && error.stack ? String(error.stack) : '';
    var root = document.getElementById('root');
    if (root && root.parentNode) {
      var fresh = root.cloneNode(false);
      fresh.appendChild(card(message, stack));
      root.parentNode.replaceChild(fresh, root);
    }
    try {
      window.parent.postMessage(
        { source: 'livepreview', type: 'error', token: TOKEN, message: message, stack: stack },
        '*'
      );
    } catch (postError) {
      console.error('livepreview: could not report error', postError);
    }
  }

  function pick(globalName, key) {
    var mod = window[globalName];
    if (mod == null) return stub(key === 'default' || key === '*' ? globalName : key);
    if (key === '*') return mod;
    if (key === 'default') return mod['default'] !== undefined ? mod['default'] : mod;
    if (mod[key] !== undefined) return mod[key];
    return key === globalName ? mod : stub(key);
  }

  function stub(name) {
    if (/^[A-Z]/.test(name)) {
      var Placeholder = function (props) {
        return React.createElement(
          'div',
          { className: 'lp-placeholder' },
          '<' + name + ' /> is not available in the preview',
          props && props.children
        );
      };
      Placeholder.displayName = name;
      return Placeholder;
    }
    var proxy = new Proxy(function () {}, {
      get: function (target, key) {
        if (key === Symbol.toPrimitive) return function () { return ''; };
        if (key === 'then') return undefined;
        return proxy;
      },
      apply: function () { return proxy; },
      construct: function () { return proxy; }
    });
    return proxy;
  }

  window.__livepreview = { token: TOKEN, fail: fail, pick: pick, stub: stub };
  window.addEventListener('error', function (event) {
    fail(event.error || { message: event.message });
  });
  window.addEventListener('unhandledrejection', function (event) {
    fail(event.reason);
  });
})();
"""

INVOCATION_JS = """
class __LpBoundary extends React.Component {
  constructor(props) {
    super(props);
    this.state = { error: null };
  }
  static getDerivedStateFromError(error) {
    return { error: error };
  }
  componentDidCatch(error) {
    window.__livepreview.fail(error);
  }
  render() {
    return this.state.error ? null : this.props.children;
  }
}

try {
  if (typeof __NAME__ === 'undefined') {
    throw new ReferenceError('Component "__NAME__" is not defined');
  }
  ReactDOM.createRoot(document.getElementById('root')).render(
    React.createElement(__LpBoundary, null, React.createElement(__NAME__))
  );
} catch (error) {
  window.__livepreview.fail(error);
}
"""


def _script_tags(urls: list[str] | tuple[str, ...]) -> str:
    return "\n".join(f'<script crossorigin src="{_escape_html(url)}"></script>' for url in urls)


def _render(
    result: TransformationResult, options: HarnessOptions, token: int, class_name: str | None
) -> RenderDocument:
    name = result.component_name
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"invalid component name: {name!r}")

    libraries = detect_libraries(result.processed_code, result.imports)
    globals_by_module = module_globals(libraries, options.extra_globals)
    prelude = build_prelude(result.processed_code, result.imports, globals_by_module)

    scripts = list(react_scripts(options.react_version))
    for library in libraries:
        scripts.extend(library.scripts)
    scripts.append(BABEL_SCRIPT)
    if options.include_tailwind:
        scripts.append(TAILWIND_SCRIPT)

    title = options.title or f"Preview - {name}"
    channel = ERROR_CHANNEL_JS.replace("__TOKEN__", json.dumps(token)).replace("__TITLE__", json.dumps(ERROR_TITLE))
    invocation = INVOCATION_JS.replace("__NAME__", name)
    root_class = f' class="{_escape_html(class_name)}"' if class_name else ""

    babel_body = "\n\n".join(part for part in (prelude, _escape_script(result.processed_code), invocation.strip()) if part)

    html = f"""<!DOCTYPE html>
<html lang="{_escape_html(options.lang)}">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{_escape_html(title)}</title>
<script>{channel}</script>
{_script_tags(scripts)}
<style>{HARNESS_CSS}</style>
</head>
<body>
<div id="root"{root_class}><div class="lp-loading">Loading...</div></div>
<script type="text/babel" data-presets="react">
{babel_body}
</script>
</body>
</html>"""

    return RenderDocument(
        html=html,
        component_name=name,
        token=token,
        libraries=[library.name for library in libraries],
    )


def build_render_document(
    result: TransformationResult,
    options: HarnessOptions | None = None,
    token: int = 0,
    class_name: str | None = None,
) -> RenderDocument:
    """
    Build the sandbox document. Never raises: a failure while building turns
    into an error document that renders immediately.
    """
    options = options or HarnessOptions()
    try:
        return _render(result, options, token, class_name)
    except Exception as e:
        logger.exception("harness: failed to build document for %s", result.component_name)
        return build_error_document(str(e) or type(e).__name__, token=token, component_name=result.component_name, options=options)


def build_error_document(
    message: str,
    stack: str | None = None,
    title: str = ERROR_TITLE,
    token: int = 0,
    component_name: str = FALLBACK_COMPONENT,
    options: HarnessOptions | None = None,
) -> RenderDocument:
    """A static page showing the error card. Loads no scripts."""
    options = options or HarnessOptions()
    stack_block = f'\n<pre class="lp-stack">{_escape_html(stack)}</pre>' if stack else ""
    html = f"""<!DOCTYPE html>
<html lang="{_escape_html(options.lang)}">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{_escape_html(title)}</title>
<style>{HARNESS_CSS}</style>
</head>
<body>
<div id="root"><div class="lp-error">
<h2>{_escape_html(title)}</h2>
<pre>{_escape_html(message)}</pre>{stack_block}
</div></div>
</body>
</html>"""
    return RenderDocument(html=html, component_name=component_name, token=token, error=message)
