#!/usr/bin/env python3
"""
Cloudinary optimizer for the Labaig portfolio pages.

Rewrites every Cloudinary reference in the site's HTML files so that the
CDN serves the best quality in an automatic format:
- <img src>        -> q_auto:best,f_auto (+ srcset/sizes when missing)
- <video src>      -> q_80,vc_auto (+ poster frame when missing)
- data-gallery     -> every "src" of the JSON entries

Each file is backed up as <file>.bak before it is overwritten and a summary
is written to optimization-report.txt in the root directory.

Usage:
    python optimize_cloudinary.py            # current directory
    python optimize_cloudinary.py public/
"""

import argparse
import html
import json
import logging
import os
import re
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from portfolio.logging_config import configure_logging

logger = logging.getLogger("optimize_cloudinary")

CLOUDINARY_HOST = "cloudinary.com"
UPLOAD_MARKER = "/upload/"

IMAGE_DIRECTIVES = "q_auto:best,f_auto"
SRCSET_DIRECTIVES = "q_auto,f_auto"
# Batch videos keep a fixed quality; the in-page optimizer uses q_auto:best.
VIDEO_DIRECTIVES = "q_80,vc_auto"
POSTER_EXTENSION = ".jpg"

SRCSET_WIDTHS = [480, 768, 1024, 1440, 1920, 2560]

SIZES_PROJECT_CARD = "(max-width: 600px) 100vw, (max-width: 1200px) 50vw, 33vw"
SIZES_COLUMN = "33vw"
SIZES_DEFAULT = "100vw"

TEMPLATE_MARKERS = ("{{", "{%", "${")

MAX_EXAMPLES = 5
REPORT_NAME = "optimization-report.txt"
BACKUP_SUFFIX = ".bak"

IMG_RE = re.compile(
    r'<img(?P<before>[^>]*?\s)src\s*=\s*(?P<quote>["\'])'
    r'(?P<src>[^"\']*cloudinary\.com[^"\']*?)(?P=quote)(?P<after>[^>]*?)>',
    re.IGNORECASE,
)
VIDEO_RE = re.compile(
    r'<video(?P<before>[^>]*?\s)src\s*=\s*(?P<quote>["\'])'
    r'(?P<src>[^"\']*cloudinary\.com[^"\']*?)(?P=quote)(?P<after>[^>]*?)>',
    re.IGNORECASE,
)
GALLERY_RE = re.compile(
    r'data-gallery\s*=\s*(?P<quote>["\'])(?P<value>.*?)(?P=quote)',
    re.IGNORECASE | re.DOTALL,
)
SRCSET_ATTR_RE = re.compile(r'\ssrcset\s*=', re.IGNORECASE)
POSTER_ATTR_RE = re.compile(r'\sposter\s*=', re.IGNORECASE)

OPTIMIZED_IMAGE_RE = re.compile(
    r'^(?P<prefix>.+/upload/)' + re.escape(IMAGE_DIRECTIVES) + r'/(?P<filename>.+)$'
)
OPTIMIZED_VIDEO_RE = re.compile(
    r'^(?P<prefix>.+/upload/)' + re.escape(VIDEO_DIRECTIVES) + r'/(?P<path>.+?)(?P<ext>\.[A-Za-z0-9]+)?$'
)


def optimize_image(url: str) -> str:
    """Inject the best-quality/auto-format directives into an image URL."""
    if CLOUDINARY_HOST not in url or "/image/" not in url:
        return url

    # Already optimized
    if "q_auto:best" in url and "f_auto" in url:
        return url

    return url.replace(UPLOAD_MARKER, f"/upload/{IMAGE_DIRECTIVES}/", 1)


def optimize_video(url: str) -> str:
    """Inject the fixed-quality/auto-codec directives into a video URL."""
    if CLOUDINARY_HOST not in url or "/video/" not in url:
        return url

    # Either optimizer may have been here before
    if "vc_auto" in url and ("q_80" in url or "q_auto:best" in url):
        return url

    return url.replace(UPLOAD_MARKER, f"/upload/{VIDEO_DIRECTIVES}/", 1)


def srcset_entry(optimized_url: str, width: int) -> Optional[str]:
    """Build one width-scoped srcset candidate, or None if the URL has no directive segment."""
    match = OPTIMIZED_IMAGE_RE.match(optimized_url)
    if not match:
        return None
    return f"{match.group('prefix')}{SRCSET_DIRECTIVES}/w_{width}/{match.group('filename')} {width}w"


def image_srcset(url: str) -> str:
    optimized = optimize_image(url)
    entries = (srcset_entry(optimized, width) for width in SRCSET_WIDTHS)
    return ", ".join(entry for entry in entries if entry)


def video_poster(url: str) -> Optional[str]:
    """Derive a still-frame poster URL from an optimized video URL."""
    match = OPTIMIZED_VIDEO_RE.match(optimize_video(url))
    if not match:
        return None
    return f"{match.group('prefix')}{IMAGE_DIRECTIVES}/{match.group('path')}{POSTER_EXTENSION}"


def sizes_for(attrs: str) -> str:
    """Pick the sizes hint from the class markers found before src."""
    if "project-card-image" in attrs:
        return SIZES_PROJECT_CARD
    if "column-image" in attrs:
        return SIZES_COLUMN
    return SIZES_DEFAULT


def _insert_before_close(attrs: str, addition: str) -> str:
    # Keep a trailing self-closing slash last
    stripped = attrs.rstrip()
    if stripped.endswith("/"):
        return stripped[:-1].rstrip() + addition + " /"
    return attrs + addition


def _splice(match: re.Match, replacements: dict) -> str:
    """Swap the text of named groups inside the matched tag, leaving every other byte as found."""
    whole = match.group(0)
    base = match.start()
    spans = sorted((match.span(name), text) for name, text in replacements.items())
    for (start, end), text in reversed(spans):
        whole = whole[:start - base] + text + whole[end - base:]
    return whole


@dataclass
class OptimizationStats:
    images_updated: int = 0
    videos_updated: int = 0
    examples: list = field(default_factory=list)
    skipped_urls: list = field(default_factory=list)
    broken_urls: list = field(default_factory=list)
    template_urls: list = field(default_factory=list)

    def add_example(self, original: str, optimized: str) -> None:
        if len(self.examples) < MAX_EXAMPLES:
            self.examples.append((original, optimized))


@dataclass
class ProcessedFile:
    original: Path
    backup: Optional[Path]
    modified: bool
    error: Optional[str] = None


class CloudinaryHTMLOptimizer:
    """Rewrites Cloudinary URLs in HTML text and files, collecting per-run statistics."""

    def __init__(self, stats: Optional[OptimizationStats] = None):
        self.stats = stats or OptimizationStats()

    def _rewrite_url(self, url: str, kind: str) -> tuple:
        """Optimize one URL of the given kind ("image" or "video").

        Returns the (possibly unchanged) URL and whether it is a well-formed
        Cloudinary URL of that kind.
        """
        if any(marker in url for marker in TEMPLATE_MARKERS):
            self.stats.template_urls.append(url)
            return url, False
        if UPLOAD_MARKER not in url:
            self.stats.broken_urls.append(url)
            return url, False
        if f"/{kind}/" not in url:
            self.stats.skipped_urls.append(url)
            return url, False

        optimized = optimize_video(url) if kind == "video" else optimize_image(url)
        if optimized != url:
            if kind == "video":
                self.stats.videos_updated += 1
            else:
                self.stats.images_updated += 1
            self.stats.add_example(url, optimized)
        return optimized, True

    def _replace_img(self, match: re.Match) -> str:
        before, src, after = match.group("before", "src", "after")
        optimized, ok = self._rewrite_url(src, "image")

        addition = ""
        if ok and not SRCSET_ATTR_RE.search(before + after):
            srcset = image_srcset(optimized)
            if srcset:
                addition = f' srcset="{srcset}" sizes="{sizes_for(before)}"'

        # Only the URL changes; srcset/sizes go right after its closing quote
        return _splice(match, {"src": optimized, "after": addition + after})

    def _replace_video(self, match: re.Match) -> str:
        before, src, after = match.group("before", "src", "after")
        optimized, ok = self._rewrite_url(src, "video")

        if ok and not POSTER_ATTR_RE.search(before + after):
            poster = video_poster(optimized)
            if poster:
                after = _insert_before_close(after, f' poster="{poster}"')

        return _splice(match, {"src": optimized, "after": after})

    def _replace_gallery(self, match: re.Match) -> str:
        quote, raw = match.group("quote", "value")
        if CLOUDINARY_HOST not in raw:
            return match.group(0)

        try:
            entries = json.loads(html.unescape(raw))
        except ValueError as e:
            logger.debug("Error parsing gallery data: %s", e)
            return match.group(0)
        if not isinstance(entries, list):
            return match.group(0)

        # JSON quotes inside a double-quoted attribute are entity-encoded
        json_quote = re.escape("&quot;" if quote == '"' else '"')
        src_literal = re.compile(
            r"(?P<head>" + json_quote + r"src" + json_quote + r"\s*:\s*" + json_quote + r")"
            r"(?P<url>.*?)(?P<tail>" + json_quote + r")"
        )

        def replace_src(src_match: re.Match) -> str:
            head, literal, tail = src_match.group("head", "url", "tail")
            try:
                url = json.loads('"' + html.unescape(literal) + '"')
            except ValueError:
                return src_match.group(0)
            if CLOUDINARY_HOST not in url:
                return src_match.group(0)

            # Video entries get the batch video directives rather than passing through untouched
            kind = "video" if "/video/" in url else "image"
            optimized, _ = self._rewrite_url(url, kind)
            if optimized == url:
                return src_match.group(0)

            encoded = json.dumps(optimized, ensure_ascii=False)[1:-1]
            if quote == '"':
                encoded = html.escape(encoded, quote=True)
            else:
                encoded = encoded.replace("'", "&#x27;")
            return head + encoded + tail

        whole = match.group(0)
        value_start = match.start("value") - match.start()
        return whole[:value_start] + src_literal.sub(replace_src, raw) + whole[value_start + len(raw):]

    def process_html_content(self, content: str) -> str:
        modified_content = IMG_RE.sub(self._replace_img, content)
        modified_content = VIDEO_RE.sub(self._replace_video, modified_content)
        modified_content = GALLERY_RE.sub(self._replace_gallery, modified_content)
        return modified_content

    def process_file(self, file_path: Path) -> ProcessedFile:
        file_path = Path(file_path)
        backup_path = None
        try:
            # 1. Backup first, byte for byte
            backup_path = file_path.with_name(file_path.name + BACKUP_SUFFIX)
            shutil.copyfile(file_path, backup_path)

            # 2. Rewrite
            # Decoded from bytes so CRLF line endings survive the round trip
            content = file_path.read_bytes().decode("utf-8")
            modified_content = self.process_html_content(content)

            # 3. Save
            file_path.write_bytes(modified_content.encode("utf-8"))

            return ProcessedFile(original=file_path, backup=backup_path, modified=True)
        except Exception as e:
            logger.error("Error processing %s: %s", file_path, e)
            if backup_path is not None and not backup_path.exists():
                backup_path = None
            return ProcessedFile(original=file_path, backup=backup_path, modified=False, error=str(e))

    def generate_report(self, processed_files: list) -> str:
        report = "=== CLOUDINARY OPTIMIZATION REPORT ===\n\n"

        report += "FILES PROCESSED:\n"
        for processed in processed_files:
            report += f"- Original: {processed.original}\n"
            report += f"- Backup: {processed.backup if processed.backup else 'none'}\n"
            report += f"- Modified: {str(processed.modified).lower()}\n"
            if processed.error:
                report += f"- Error: {processed.error}\n"
            report += "\n"

        report += "\nSTATISTICS:\n"
        report += f"- Images updated: {self.stats.images_updated}\n"
        report += f"- Videos updated: {self.stats.videos_updated}\n"
        report += f"- URLs skipped: {len(self.stats.skipped_urls)}\n"
        report += f"- Broken URLs: {len(self.stats.broken_urls)}\n"
        report += f"- Template URLs: {len(self.stats.template_urls)}\n\n"

        report += "EXAMPLES (Original → Optimized):\n"
        for index, (original, optimized) in enumerate(self.stats.examples, start=1):
            report += f"{index}. {original}\n   → {optimized}\n\n"

        for title, urls in (
            ("SKIPPED URLS", self.stats.skipped_urls),
            ("BROKEN URLS", self.stats.broken_urls),
            ("TEMPLATE URLS", self.stats.template_urls),
        ):
            if urls:
                report += f"{title}:\n"
                for url in urls:
                    report += f"- {url}\n"
                report += "\n"

        return report


def find_html_files(directory: Path) -> list:
    """All *.html files below directory, in a stable order.

    Unreadable directories are logged and skipped; symlinked directories are not followed.
    """
    def log_walk_error(error: OSError) -> None:
        logger.error("Skipping %s: %s", error.filename, error)

    found = []
    for root, dirnames, filenames in os.walk(directory, onerror=log_walk_error):
        dirnames.sort()
        found.extend(Path(root) / name for name in sorted(filenames) if name.endswith(".html"))
    return found


def optimize_all_html_files(directory, optimizer: Optional[CloudinaryHTMLOptimizer] = None) -> list:
    directory = Path(directory)
    optimizer = optimizer or CloudinaryHTMLOptimizer()
    processed_files = []

    for file_path in find_html_files(directory):
        print(f"Processing: {file_path}")
        processed_files.append(optimizer.process_file(file_path))

    report = optimizer.generate_report(processed_files)
    (directory / REPORT_NAME).write_text(report, encoding="utf-8")

    print("Optimization completed!")
    print(f"Report saved to: {REPORT_NAME}")

    return processed_files


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Rewrites Cloudinary image/video URLs in HTML files to optimized variants",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python optimize_cloudinary.py
    python optimize_cloudinary.py public/
    python optimize_cloudinary.py public/ --verbose
        """
    )
    parser.add_argument('directory', nargs='?', default='.', help='Root directory to scan for .html files')
    parser.add_argument('--verbose', action='store_true', help='Log skipped gallery data and other details')

    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else "INFO")

    directory = Path(args.directory)
    if not directory.is_dir():
        parser.error(f"not a directory: {directory}")

    optimize_all_html_files(directory)
    return 0


if __name__ == "__main__":
    sys.exit(main())
