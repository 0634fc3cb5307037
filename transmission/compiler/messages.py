"""Line-by-line classification of passage text into a message sequence.

Each non-blank line is, in priority order:
  image      <img src="...">, ![alt](url) or [img:url]
  pause      [pause:2000] or [wait:2000]
  narrator   "Liz: ..." or "Liz ... says: ..."           (narrator name configurable)
  speaker    "The Evil Eye says: ..."                     → system message with speaker
  player     "You: ...", "You say: ...", "You whisper: ..." → collected, no message
  system     anything else (stage direction)

Consecutive stage-direction lines are merged into one message joined by
<br>. A speaker line with a title but nothing after "says:" waits for the
plain lines that follow (poems, monologues) and is merged with them.
"""

from __future__ import annotations

import re

from transmission.models import ImageMessage, Message, NarratorMessage, PauseMessage, SystemMessage

from .macros import interpolate, strip_macros
from .markup import clean_line, links_to_text, remove_links, strip_html

_HTML_IMG = re.compile(r"<img\s+[^>]*src=[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE)
_MD_IMG = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_TAG_IMG = re.compile(r"\[img:([^\]]+)\]", re.IGNORECASE)
_PAUSE = re.compile(r"\[(?:pause|wait):(\d+)\]", re.IGNORECASE)
_PURE_LINK = re.compile(r"^\[\[.*\]\]\s*$")
_MACRO_LINE = re.compile(r"^\((?:set|if|else|elseif|else-if|unless|goto|go-to):", re.IGNORECASE)
_SPEAKER = re.compile(r"^(.+?)\s+(says?):\s*", re.IGNORECASE)
_SAYS = re.compile(r"\bsays?:", re.IGNORECASE)
_PLAYER = re.compile(r"^You\s*:|^You\s+(?:say|whisper)\s*:", re.IGNORECASE)
_PLAYER_SILENT = re.compile(r"^You\s+say\s+nothing\s*:", re.IGNORECASE)
_YOU = re.compile(r"^You\b", re.IGNORECASE)


def _narrator_patterns(narrator_name: str) -> tuple[re.Pattern, re.Pattern]:
    name = re.escape(narrator_name)
    return (
        re.compile(rf"^{name}\s*:\s*", re.IGNORECASE),
        re.compile(rf"^{name}(?:\s+.*?)?\s+says:\s*", re.IGNORECASE),
    )


def narrator_line_text(line: str) -> str:
    """Narrator-check form of a raw line: tags, macros and an opening hook
    bracket removed, links left intact."""
    text = strip_macros(strip_html(line.strip())).strip()
    text = re.sub(r"^\[(?!\[)", "", text)
    return text.strip()


def is_narrator_line(line: str, narrator_name: str) -> bool:
    colon, says = _narrator_patterns(narrator_name)
    text = narrator_line_text(line)
    return bool(colon.match(text) or says.match(text))


def _image_alt_from_url(url: str) -> str:
    filename = url.rsplit("/", 1)[-1]
    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    return re.sub(r"[-_]", " ", stem)


class _SequenceBuilder:
    """Accumulates messages, merging stage directions and pending speakers."""

    def __init__(self) -> None:
        self.messages: list[Message] = []
        self.player_lines: list[str] = []
        self._pending_lines: list[str] = []
        self._pending_speaker: tuple[str, str] | None = None  # (name, title)

    def flush(self) -> None:
        if self._pending_speaker:
            name, title = self._pending_speaker
            content = title
            if self._pending_lines:
                content = title + "<br>" + "<br>".join(self._pending_lines)
                self._pending_lines = []
            self.messages.append(SystemMessage(content=content, speaker=name))
            self._pending_speaker = None
        if self._pending_lines:
            self.messages.append(SystemMessage(content="<br>".join(self._pending_lines)))
            self._pending_lines = []

    def add(self, message: Message) -> None:
        self.flush()
        self.messages.append(message)

    def stage(self, text: str) -> None:
        self._pending_lines.append(text)

    def hold_speaker(self, name: str, title: str) -> None:
        self.flush()
        self._pending_speaker = (name, title)


def build_message_sequence(
    text: str, narrator_name: str, variables: set[str] | None = None
) -> tuple[list[Message], list[str]]:
    """Classify passage text into messages.

    `text` must already have its macro-extracted regions removed.
    Returns (messages, player_dialogue_lines). Variables referenced by
    (print:)/(nth:) are added to `variables`.
    """
    colon_re, says_re = _narrator_patterns(narrator_name)
    builder = _SequenceBuilder()

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if _PURE_LINK.match(line) or _MACRO_LINE.match(line):
            continue
        if line in ("]", "{", "}"):
            continue

        img = _HTML_IMG.search(line)
        if img:
            url = img.group(1)
            builder.add(ImageMessage(url=url, alt=_image_alt_from_url(url)))
            continue

        interpolated, names = interpolate(line)
        if variables is not None:
            variables.update(names)
        cleaned = clean_line(interpolated)
        if not cleaned:
            continue

        md_img = _MD_IMG.search(cleaned)
        if md_img:
            builder.add(ImageMessage(url=md_img.group(2), alt=md_img.group(1) or "Image"))
            continue
        tag_img = _TAG_IMG.search(cleaned)
        if tag_img:
            builder.add(ImageMessage(url=tag_img.group(1).strip(), alt="Image"))
            continue

        pause = _PAUSE.search(cleaned)
        if pause:
            builder.add(PauseMessage(duration=int(pause.group(1))))
            continue

        narrator_text = narrator_line_text(interpolated)
        prefix = colon_re.match(narrator_text) or says_re.match(narrator_text)
        if prefix:
            content = links_to_text(narrator_text[prefix.end():])
            content = content.rstrip("]").strip()
            if content:
                builder.add(NarratorMessage(content=content))
            else:
                builder.flush()
            continue

        if _SAYS.search(cleaned) and not _YOU.match(cleaned):
            speaker_match = _SPEAKER.match(cleaned)
            if speaker_match:
                speaker = speaker_match.group(1).strip()
                title = f"{speaker} {speaker_match.group(2)}:"
                body = links_to_text(cleaned[speaker_match.end():]).strip()
                if body:
                    builder.add(SystemMessage(content=f"{title} {body}", speaker=speaker))
                else:
                    builder.hold_speaker(speaker, title)
                continue

        if _PLAYER_SILENT.match(cleaned):
            continue
        if _PLAYER.match(cleaned):
            builder.flush()
            builder.player_lines.append(cleaned)
            continue

        stage = remove_links(cleaned).strip()
        if stage:
            builder.stage(stage)

    builder.flush()
    return builder.messages, builder.player_lines
