"""Markdown parsing utilities for links, headings, fences, and index entries."""

import re
from dataclasses import dataclass, field

from ..models import CodeFence, Heading, IndexEntry, Link

# [text](dest), ![alt](dest), [text](<dest with spaces> "title")
INLINE_LINK_PATTERN = re.compile(
    r"(!?)\[((?:\\.|[^\[\]\\]|\[(?:\\.|[^\[\]\\])*\])*)\]"
    r"\(\s*(<[^>\n]*>|[^\s()]*(?:\([^\s()]*\)[^\s()]*)*)"
    r"(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)"
)

# [id]: dest "optional title" (footnotes [^1]: are not links)
REFERENCE_DEF_PATTERN = re.compile(r"^ {0,3}\[([^\]^][^\]]*)\]:\s*(<[^>]*>|\S+)")

INLINE_CODE_PATTERN = re.compile(r"(`+)(.+?)\1")

FENCE_OPEN_PATTERN = re.compile(r"^[ \t]*(`{3,}|~{3,})(.*)$")

BLOCKQUOTE_PREFIX = re.compile(r"^[ \t]*(?:>[ \t]?)+")

ATX_HEADING_PATTERN = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")

SETEXT_UNDERLINE_PATTERN = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")

LIST_ITEM_PATTERN = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")


@dataclass
class MarkdownScan:
    """Everything extracted from one pass over a Markdown file."""

    lines: list[str]
    body_start: int  # 0-based index of the first line after front matter
    headings: list[Heading] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    fences: list[CodeFence] = field(default_factory=list)

    def line_text(self, line: int) -> str:
        """Return the text of a 1-based line number."""
        if 1 <= line <= len(self.lines):
            return self.lines[line - 1]
        return ""


def frontmatter_end(lines: list[str]) -> int:
    """Return the index of the first body line after a YAML front matter block.

    Returns 0 when the file has no front matter (or the block is never closed).
    """
    if not lines or lines[0].strip() != "---":
        return 0
    for i in range(1, len(lines)):
        if lines[i].strip() in ("---", "..."):
            return i + 1
    return 0


def github_slug(text: str) -> str:
    """Compute the anchor GitHub generates for a heading."""
    # Rendered text of links and images, not their destinations
    text = INLINE_LINK_PATTERN.sub(lambda m: m.group(2), text)
    text = text.replace("`", "")
    text = text.strip().lower()
    text = re.sub(r"[^\w\- ]", "", text)
    return text.replace(" ", "-")


def _mask_inline_code(line: str) -> str:
    """Blank out inline code spans so their contents are not read as links."""
    return INLINE_CODE_PATTERN.sub(lambda m: " " * len(m.group(0)), line)


def _strip_angle(target: str) -> str:
    target = target.strip()
    if target.startswith("<") and target.endswith(">"):
        return target[1:-1].strip()
    return target


def extract_links_from_line(line: str, lineno: int) -> list[Link]:
    """Extract inline links, images, and reference definitions from one line."""
    masked = _mask_inline_code(line)
    result: list[Link] = []

    ref = REFERENCE_DEF_PATTERN.match(masked)
    if ref:
        target = _strip_angle(ref.group(2))
        if target:
            result.append(Link(target=target, text=ref.group(1), line=lineno))
        return result

    pending = [masked]
    while pending:
        chunk = pending.pop(0)
        for match in INLINE_LINK_PATTERN.finditer(chunk):
            bang, text, dest = match.group(1), match.group(2), match.group(3)
            target = _strip_angle(dest)
            if target:
                result.append(Link(target=target, text=text.strip(), line=lineno, is_image=bang == "!"))
            # Badges: [![alt](img)](url)
            if "](" in text:
                pending.append(text)

    return result


def scan_markdown(text: str) -> MarkdownScan:
    """Walk a Markdown file once, collecting headings, links, and fences.

    Line numbers are 1-based and count front matter lines, so they match
    what an editor shows. Content inside fenced code blocks contributes
    neither headings nor links.
    """
    lines = text.splitlines()
    start = frontmatter_end(lines)
    scan = MarkdownScan(lines=lines, body_start=start)

    slug_counts: dict[str, int] = {}
    open_fence: tuple[str, int, CodeFence] | None = None  # (char, length, fence)
    previous = ""

    def add_heading(level: int, heading_text: str, lineno: int) -> None:
        base = github_slug(heading_text)
        count = slug_counts.get(base, 0)
        slug_counts[base] = count + 1
        slug = base if count == 0 else f"{base}-{count}"
        scan.headings.append(Heading(level=level, text=heading_text, line=lineno, slug=slug))

    for idx in range(start, len(lines)):
        line = lines[idx]
        lineno = idx + 1

        # Fences inside blockquotes and (indented) list items count too
        content = BLOCKQUOTE_PREFIX.sub("", line, count=1)

        if open_fence is not None:
            char, length, fence = open_fence
            stripped = content.strip()
            if stripped and set(stripped) == {char} and len(stripped) >= length:
                fence.closed = True
                open_fence = None
            continue

        fence_match = FENCE_OPEN_PATTERN.match(content)
        if fence_match:
            marker, info = fence_match.group(1), fence_match.group(2).strip()
            if not (marker[0] == "`" and "`" in info):
                language = info.split()[0].strip("{}.") if info else None
                fence = CodeFence(line=lineno, language=language or None, closed=False)
                scan.fences.append(fence)
                open_fence = (marker[0], len(marker), fence)
                previous = ""
                continue

        heading_match = ATX_HEADING_PATTERN.match(line)
        if heading_match:
            add_heading(len(heading_match.group(1)), (heading_match.group(2) or "").strip(), lineno)
        else:
            underline = SETEXT_UNDERLINE_PATTERN.match(line)
            if (
                underline
                and previous.strip()
                and not LIST_ITEM_PATTERN.match(previous)
                and not ATX_HEADING_PATTERN.match(previous)
            ):
                level = 1 if underline.group(1).startswith("=") else 2
                add_heading(level, previous.strip(), lineno - 1)

        scan.links.extend(extract_links_from_line(line, lineno))
        previous = line

    return scan


def extract_section_links(scan: MarkdownScan, header: str) -> list[Link]:
    """Return links found under a heading until the next heading of equal or higher rank."""
    wanted = header.strip().lower()
    result: list[Link] = []
    for i, heading in enumerate(scan.headings):
        if heading.text.lower() != wanted:
            continue
        end = None
        for later in scan.headings[i + 1 :]:
            if later.level <= heading.level:
                end = later.line
                break
        for link in scan.links:
            if link.line > heading.line and (end is None or link.line < end):
                result.append(link)
    return result


def parse_index_entries(scan: MarkdownScan) -> list[IndexEntry]:
    """Parse index entries: the first internal link on each list item or table row.

    The category of an entry is the nearest preceding level-2 or level-3 heading.
    """
    entries: list[IndexEntry] = []
    seen_lines: set[int] = set()
    headings = [h for h in scan.headings if h.level in (2, 3)]

    for link in scan.links:
        if link.is_external or link.is_image or not link.path or link.line in seen_lines:
            continue
        text = scan.line_text(link.line)
        if not (LIST_ITEM_PATTERN.match(text) or text.lstrip().startswith("|")):
            continue
        seen_lines.add(link.line)

        category = None
        for heading in headings:
            if heading.line < link.line:
                category = heading.text
            else:
                break

        entries.append(IndexEntry(title=link.text, target=link.target, category=category, line=link.line))

    return entries
