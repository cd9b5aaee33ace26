"""Print stylesheet generation.

:data:`BASE_STYLESHEET` encodes the fixed page-break policy and the 11pt
typographic scale.  :func:`generate_stylesheet` derives the stylesheet
for one request by rescaling every ``pt`` font size, substituting the
body/code font stacks and the root line height, and appending an
``@page`` margin rule that matches the renderer's margin configuration.
"""

from __future__ import annotations

import re

from .models import (
    CodeFontFamily,
    FontFamily,
    FontSizePreset,
    LineHeightPreset,
    MarginPreset,
    PDFOptions,
)

BASE_FONT_SIZE_PT = 11.0

FONT_SIZE_MULTIPLIERS = {
    FontSizePreset.SMALL: 0.9,
    FontSizePreset.MEDIUM: 1.0,
    FontSizePreset.LARGE: 1.15,
}

LINE_HEIGHTS = {
    LineHeightPreset.COMPACT: 1.4,
    LineHeightPreset.NORMAL: 1.6,
    LineHeightPreset.RELAXED: 1.8,
}

MARGIN_PRESETS = {
    MarginPreset.NARROW: "0.5in",
    MarginPreset.NORMAL: "0.75in",
    MarginPreset.WIDE: "1in",
}

FONT_FAMILIES = {
    FontFamily.INTER: "'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif",
    FontFamily.SYSTEM: (
        "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif"
    ),
    FontFamily.GEORGIA: "Georgia, 'Times New Roman', Times, serif",
    FontFamily.TIMES: "'Times New Roman', Times, serif",
    FontFamily.GARAMOND: "Garamond, 'EB Garamond', Georgia, serif",
    FontFamily.PALATINO: "'Palatino Linotype', Palatino, 'Book Antiqua', Georgia, serif",
    FontFamily.HELVETICA: "'Helvetica Neue', Helvetica, Arial, sans-serif",
    FontFamily.ARIAL: "Arial, 'Helvetica Neue', Helvetica, sans-serif",
    FontFamily.ROBOTO: "'Roboto', 'Helvetica Neue', Arial, sans-serif",
    FontFamily.MONO: "'SFMono-Regular', Consolas, 'Liberation Mono', Menlo, monospace",
    FontFamily.JETBRAINS: "'JetBrains Mono', 'Fira Code', Consolas, monospace",
}

CODE_FONT_FAMILIES = {
    CodeFontFamily.JETBRAINS: "'JetBrains Mono', 'Fira Code', Consolas, monospace",
    CodeFontFamily.FIRACODE: "'Fira Code', 'JetBrains Mono', Consolas, monospace",
    CodeFontFamily.SOURCECODEPRO: "'Source Code Pro', 'Fira Code', Consolas, monospace",
    CodeFontFamily.CONSOLAS: "Consolas, 'Liberation Mono', Menlo, monospace",
    CodeFontFamily.MONACO: "Monaco, 'Lucida Console', monospace",
    CodeFontFamily.MENLO: "Menlo, 'Liberation Mono', Consolas, monospace",
}

BASE_STYLESHEET = """
/* Base reset and typography */
* {
  margin: 0;
  padding: 0;
  box-sizing: border-box;
}

html {
  font-size: 11pt;
  line-height: 1.5;
}

body {
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
  color: #1a1a1a;
  background: white;
  padding: 0;
  margin: 0;
  font-size: 11pt !important;
  line-height: inherit !important;
}

/* Override inline sizing left over from the source document */
.document-content span,
.document-content div:not(.document-content),
.document-content a,
.document-content em,
.document-content strong,
.document-content b,
.document-content i {
  font-size: inherit !important;
  line-height: inherit !important;
}

.document-content * {
  max-width: 100%;
}

/* ===========================================
   PAGE BREAKS
   =========================================== */

h1, h2, h3, h4, h5, h6 {
  page-break-after: avoid;
  page-break-inside: avoid;
  break-after: avoid;
  break-inside: avoid;
}

h1 + *, h2 + *, h3 + *, h4 + *, h5 + *, h6 + * {
  page-break-before: avoid;
  break-before: avoid;
}

p {
  orphans: 3;
  widows: 3;
}

table {
  page-break-inside: auto !important;
  break-inside: auto !important;
}

thead {
  display: table-header-group;
}

tr {
  page-break-inside: avoid;
  break-inside: avoid;
}

table.allow-break tr {
  page-break-inside: auto;
  break-inside: auto;
}

pre {
  page-break-inside: auto !important;
  break-inside: auto !important;
}

pre.short-code {
  page-break-inside: avoid !important;
  break-inside: avoid !important;
}

img {
  page-break-inside: avoid;
  break-inside: avoid;
  max-height: 80vh;
}

ul, ol {
  page-break-before: auto;
  break-before: auto;
}

li:first-child {
  page-break-before: avoid;
  break-before: avoid;
}

blockquote {
  page-break-inside: auto;
  break-inside: auto;
}

blockquote.short {
  page-break-inside: avoid;
  break-inside: avoid;
}

aside {
  page-break-inside: auto;
  break-inside: auto;
}

aside.short {
  page-break-inside: avoid;
  break-inside: avoid;
}

figure, .column-list {
  page-break-inside: avoid;
  break-inside: avoid;
}

/* ===========================================
   HEADINGS
   =========================================== */

h1 {
  font-size: 20pt !important;
  font-weight: 700;
  margin: 16pt 0 8pt 0;
  padding-bottom: 5pt;
  border-bottom: 2px solid #e5e7eb;
}

h2 {
  font-size: 16pt !important;
  font-weight: 600;
  margin: 14pt 0 6pt 0;
  padding-bottom: 3pt;
  border-bottom: 1px solid #e5e7eb;
}

h3 {
  font-size: 13pt !important;
  font-weight: 600;
  margin: 12pt 0 5pt 0;
}

h4 {
  font-size: 11pt !important;
  font-weight: 600;
  margin: 10pt 0 5pt 0;
}

h5, h6 {
  font-size: 10pt !important;
  font-weight: 600;
  margin: 8pt 0 4pt 0;
}

h1:first-child, h2:first-child, h3:first-child,
h4:first-child, h5:first-child, h6:first-child {
  margin-top: 0;
}

/* ===========================================
   TEXT
   =========================================== */

p {
  margin: 0 0 8pt 0;
  text-align: left;
  font-size: 11pt !important;
}

a {
  color: #2563eb;
  text-decoration: underline;
}

small, .code-caption, figcaption {
  font-size: 9pt !important;
  color: #6b7280;
}

.code-caption {
  margin-top: -4pt;
}

.nested {
  padding-left: 20pt;
}

/* ===========================================
   LISTS
   =========================================== */

ul, ol {
  margin: 0 0 8pt 0;
  padding-left: 20pt;
}

li {
  margin-bottom: 2pt;
  font-size: 11pt !important;
}

ul {
  list-style-type: disc;
}

ol {
  list-style-type: decimal;
}

ul ul, ol ul {
  list-style-type: circle;
  margin-bottom: 0;
}

ul ul ul, ol ol ul, ul ol ul, ol ul ul {
  list-style-type: square;
}

ul.task-list, ul.contains-task-list {
  list-style-type: none;
  padding-left: 0;
}

ul.task-list li, li.task-list-item {
  display: flex;
  align-items: flex-start;
  gap: 8pt;
}

li.task-list-item.checked > span {
  text-decoration: line-through;
  color: #6b7280;
}

ul.task-list input[type="checkbox"], li.task-list-item input[type="checkbox"] {
  margin-top: 3pt;
  width: 12pt;
  height: 12pt;
}

details {
  margin: 0 0 8pt 0;
}

details > summary {
  font-weight: 600;
  margin-bottom: 4pt;
}

/* ===========================================
   BLOCKQUOTES
   =========================================== */

blockquote {
  margin: 8pt 0;
  padding: 6pt 14pt;
  border-left: 3pt solid #d1d5db;
  background: #f9fafb;
  font-style: italic;
  color: #4b5563;
}

blockquote p:last-child {
  margin-bottom: 0;
}

hr {
  border: none;
  border-top: 1px solid #e5e7eb;
  margin: 16pt 0;
}

/* ===========================================
   TABLES
   =========================================== */

table {
  width: 100%;
  max-width: 100%;
  table-layout: auto;
  border-collapse: collapse;
  margin: 8pt 0;
  font-size: 9pt !important;
}

thead {
  display: table-header-group;
  background-color: #f3f4f6;
}

tbody {
  display: table-row-group;
}

th, td {
  word-wrap: break-word;
  overflow-wrap: break-word;
  word-break: break-word;
  white-space: normal;
  hyphens: auto;
  padding: 6pt 10pt;
  border: 1px solid #d1d5db;
  text-align: left;
  vertical-align: top;
}

table:has(td:nth-child(3)) th:nth-child(2),
table:has(td:nth-child(3)) td:nth-child(2) {
  width: 1%;
  white-space: nowrap;
}

th {
  background-color: #f3f4f6;
  font-weight: 600;
}

td {
  background-color: white;
}

tbody tr:nth-child(even) td {
  background-color: #f9fafb;
}

/* ===========================================
   CODE
   =========================================== */

code {
  font-family: 'JetBrains Mono', 'Fira Code', 'SFMono-Regular', Consolas, monospace;
  font-size: 8.5pt !important;
  background-color: #f3f4f6;
  padding: 1pt 3pt;
  border-radius: 2pt;
  color: #be185d;
}

pre {
  font-family: 'JetBrains Mono', 'Fira Code', 'SFMono-Regular', Consolas, monospace;
  font-size: 8.5pt !important;
  background-color: #1f2937;
  color: #e5e7eb;
  padding: 8pt;
  border-radius: 4pt;
  overflow-x: hidden;
  margin: 8pt 0;
  white-space: pre-wrap;
  word-wrap: break-word;
}

pre code {
  background: transparent;
  padding: 0;
  color: inherit;
  font-size: inherit;
  border-radius: 0;
}

.equation {
  margin: 8pt 0;
  text-align: center;
}

/* Pygments token classes inside highlighted blocks */
.hljs .k, .hljs .kc, .hljs .kd, .hljs .kn, .hljs .kp, .hljs .kr, .hljs .ow, .hljs .nb {
  color: #c084fc;
}

.hljs .s, .hljs .s1, .hljs .s2, .hljs .sb, .hljs .sc, .hljs .sd, .hljs .se,
.hljs .sh, .hljs .si, .hljs .sx, .hljs .sr, .hljs .ss, .hljs .na, .hljs .gi {
  color: #86efac;
}

.hljs .m, .hljs .mi, .hljs .mf, .hljs .mh, .hljs .mo, .hljs .mb, .hljs .il {
  color: #fdba74;
}

.hljs .c, .hljs .c1, .hljs .cm, .hljs .cp, .hljs .cs, .hljs .ch, .hljs .gd {
  color: #9ca3af;
}

.hljs .nf, .hljs .fm, .hljs .nc, .hljs .nn, .hljs .nd {
  color: #93c5fd;
}

.hljs .nv, .hljs .vc, .hljs .vg, .hljs .vi, .hljs .bp {
  color: #67e8f9;
}

.hljs .kt, .hljs .nt {
  color: #fca5a5;
}

/* ===========================================
   IMAGES
   =========================================== */

img {
  max-width: 100%;
  height: auto;
  margin: 10pt 0;
  page-break-inside: avoid;
  break-inside: avoid;
}

img.large {
  page-break-inside: auto;
  break-inside: auto;
}

figure {
  margin: 10pt 0;
}

figure img {
  margin: 0 0 4pt 0;
}

/* ===========================================
   CALLOUTS
   =========================================== */

aside {
  margin: 10pt 0;
  padding: 10pt 14pt;
  border-radius: 4pt;
  background: #f9fafb;
  border-left: 3pt solid #d1d5db;
  display: flex;
  flex-direction: column;
  gap: 6pt;
}

aside > :first-child {
  font-size: 18pt;
  line-height: 1;
  margin-bottom: 2pt;
}

aside.callout {
  flex-direction: row;
  gap: 10pt;
}

aside .callout-icon img {
  width: 18pt;
  height: 18pt;
  margin: 0;
}

aside p {
  margin: 3pt 0;
}

aside p:last-child {
  margin-bottom: 0;
}

aside strong {
  font-weight: 600;
  color: #1f2937;
}

aside[data-callout="info"], aside.callout-info, aside.notion-blue_background {
  background: #eff6ff;
  border-left-color: #3b82f6;
}

aside[data-callout="warning"], aside.callout-warning, aside.notion-yellow_background,
aside.notion-orange_background {
  background: #fef3c7;
  border-left-color: #f59e0b;
}

aside[data-callout="error"], aside.callout-error, aside.notion-red_background,
aside.notion-pink_background {
  background: #fee2e2;
  border-left-color: #ef4444;
}

aside[data-callout="success"], aside.callout-success, aside.notion-green_background {
  background: #d1fae5;
  border-left-color: #10b981;
}

aside.notion-purple_background {
  background: #f3e8ff;
  border-left-color: #a855f7;
}

aside.notion-brown_background {
  background: #f5ebe0;
  border-left-color: #a16207;
}

/* ===========================================
   NOTION COLORS
   =========================================== */

.notion-gray { color: #787774; }
.notion-brown { color: #9f6b53; }
.notion-orange { color: #d9730d; }
.notion-yellow { color: #cb912f; }
.notion-green { color: #448361; }
.notion-blue { color: #337ea9; }
.notion-purple { color: #9065b0; }
.notion-pink { color: #c14c8a; }
.notion-red { color: #d44c47; }
span.notion-gray_background { background: #f1f1ef; }
span.notion-brown_background { background: #f4eeee; }
span.notion-orange_background { background: #fbecdd; }
span.notion-yellow_background { background: #fbf3db; }
span.notion-green_background { background: #edf3ec; }
span.notion-blue_background { background: #e7f3f8; }
span.notion-purple_background { background: #f6f3f9; }
span.notion-pink_background { background: #faf1f5; }
span.notion-red_background { background: #fdebec; }

/* ===========================================
   COLUMNS
   =========================================== */

.column-list {
  display: flex;
  gap: 16pt;
  margin: 8pt 0;
}

.column-list > .column {
  flex: 1 1 0;
  min-width: 0;
}

/* ===========================================
   PAGE BREAK UTILITIES
   =========================================== */

.page-break-before {
  page-break-before: always;
  break-before: page;
}

.page-break-after {
  page-break-after: always;
  break-after: page;
}

.no-page-break {
  page-break-inside: avoid;
  break-inside: avoid;
}

.allow-page-break {
  page-break-inside: auto;
  break-inside: auto;
}

@media print {
  body {
    print-color-adjust: exact;
    -webkit-print-color-adjust: exact;
  }

  a[href^="http"]:after {
    content: none;
  }

  h1, h2, h3, h4, h5, h6 {
    page-break-after: avoid;
    break-after: avoid;
  }

  p {
    orphans: 3;
    widows: 3;
  }

  table, pre {
    page-break-inside: auto;
    break-inside: auto;
  }

  thead {
    display: table-header-group;
  }

  tr {
    page-break-inside: avoid;
    break-inside: avoid;
  }
}

/* Compact mode */
.compact h1 { margin: 16pt 0 8pt 0; }
.compact h2 { margin: 12pt 0 6pt 0; }
.compact h3 { margin: 10pt 0 5pt 0; }
.compact h4, .compact h5, .compact h6 { margin: 8pt 0 4pt 0; }
.compact p { margin: 0 0 8pt 0; }
.compact ul, .compact ol { margin: 0 0 8pt 0; }
.compact li { margin-bottom: 2pt; }
.compact table { margin: 8pt 0; }
.compact pre { margin: 8pt 0; padding: 8pt; }
.compact blockquote { margin: 8pt 0; padding: 6pt 12pt; }
.compact aside { margin: 8pt 0; padding: 8pt 12pt; }
"""

_FONT_SIZE = re.compile(r"font-size:\s*([\d.]+)pt(\s*!important)?")
_BODY_FONT = re.compile(r"(body\s*\{[^}]*font-family:)[^;]+;")
_CODE_FONT = re.compile(r"((?<![\w-])(?:code|pre)\s*\{[^}]*font-family:)[^;]+;")
_ROOT_LINE_HEIGHT = re.compile(r"(html\s*\{[^}]*line-height:)[^;]+;")


def format_number(value: float) -> str:
    """Render a CSS number without a trailing ``.0`` (``1.0`` -> ``1``)."""
    return f"{value:g}"


def font_size_multiplier(options: PDFOptions) -> float:
    if options.font_size is FontSizePreset.CUSTOM and options.custom_font_size:
        return options.custom_font_size / BASE_FONT_SIZE_PT
    return FONT_SIZE_MULTIPLIERS.get(options.font_size, 1.0)


def line_height(options: PDFOptions) -> float:
    if options.line_height is LineHeightPreset.CUSTOM and options.custom_line_height:
        return options.custom_line_height
    return LINE_HEIGHTS.get(options.line_height, LINE_HEIGHTS[LineHeightPreset.NORMAL])


def resolve_margins(options: PDFOptions) -> dict[str, str]:
    """Page margins as CSS lengths, shared by the stylesheet and the renderer."""
    if options.margins is MarginPreset.CUSTOM and options.custom_margins is not None:
        custom = options.custom_margins
        return {
            "top": f"{format_number(custom.top)}in",
            "right": f"{format_number(custom.right)}in",
            "bottom": f"{format_number(custom.bottom)}in",
            "left": f"{format_number(custom.left)}in",
        }
    value = MARGIN_PRESETS.get(options.margins, MARGIN_PRESETS[MarginPreset.NORMAL])
    return {"top": value, "right": value, "bottom": value, "left": value}


def generate_stylesheet(options: PDFOptions) -> str:
    """Build the complete print stylesheet for *options*."""
    multiplier = font_size_multiplier(options)

    def scale(match: re.Match[str]) -> str:
        size = float(match.group(1)) * multiplier
        return f"font-size: {size:.1f}pt{match.group(2) or ''}"

    body_font = FONT_FAMILIES[options.font_family]
    code_font = CODE_FONT_FAMILIES[options.code_font_family]
    height = format_number(line_height(options))

    css = _FONT_SIZE.sub(scale, BASE_STYLESHEET)
    css = _BODY_FONT.sub(lambda m: f"{m.group(1)} {body_font};", css)
    css = _CODE_FONT.sub(lambda m: f"{m.group(1)} {code_font};", css)
    css = _ROOT_LINE_HEIGHT.sub(lambda m: f"{m.group(1)} {height};", css)

    margins = resolve_margins(options)
    css += (
        "\n@page {\n"
        f"  margin: {margins['top']} {margins['right']} {margins['bottom']} {margins['left']} !important;\n"
        "}\n"
    )
    return css
