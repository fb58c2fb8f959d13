import logging
import os
import re
from typing import Dict, List, Mapping, Optional, Tuple, Union

from emulator.Beatmap import (Beatmap, Colours, DifficultySettings, EditorSettings, GeneralSettings,
                              MetadataSettings)
from emulator.objects import DEFAULT_HIT_SAMPLE, HitCircle, HitObject, Slider, Spinner
from emulator.timing import DEFAULT_BEAT_LENGTH, TimingPoint

logger = logging.getLogger(__name__)

FORMAT_HEADER = "osu file format v"
RAW_SECTIONS = ("HitObjects", "TimingPoints", "Events")
KEY_VALUE_SECTIONS = ("General", "Metadata", "Editor", "Difficulty", "Colours")
TIMING_FIELDS = (("meter", 4), ("sample_set", 0), ("sample_index", 0), ("volume", 100), ("uninherited", None),
                 ("effects", 0))

SectionValue = Union[Dict[str, str], List[str]]


class ChartParseError(ValueError):
    pass


def nth_bit_set(n, i):
    return (n & (1 << i)) != 0


def get_difficulty(name):
    match = re.search(r"\[(.*?)\]", name)
    if match:
        return match.group(1)
    return None


def parse_osu_file(osu_content: str) -> Optional[Dict[str, List[str]]]:
    """Split chart text into ``{section: [lines]}``.

    The format header is kept under the pseudo-section ``"Version"``.
    """
    if not osu_content:
        return None

    sections: Dict[str, List[str]] = {}
    current_section = None
    lines = (line.strip().lstrip("\ufeff") for line in osu_content.splitlines())

    for line in lines:
        if not line or line.startswith("//"):
            continue
        if line.startswith(FORMAT_HEADER):
            sections["Version"] = [line[len(FORMAT_HEADER):].strip()]
        elif line[0] == '[' and line[-1] == ']':
            current_section = line[1:-1]
            sections.setdefault(current_section, [])
        elif current_section is not None:
            sections[current_section].append(line)
    return sections


def parse_key_values(lines: List[str]) -> Dict[str, str]:
    values = {}
    for line in lines:
        key, sep, value = line.partition(':')
        if not sep:
            logger.debug("skipping line without a key: %r", line)
            continue
        values[key.strip()] = value.strip()
    return values


def decode_sections(sections: Dict[str, List[str]]) -> Dict[str, SectionValue]:
    decoded: Dict[str, SectionValue] = {}
    for name, lines in sections.items():
        if name in KEY_VALUE_SECTIONS or (name not in RAW_SECTIONS and lines and all(':' in line for line in lines)):
            decoded[name] = parse_key_values(lines)
        else:
            decoded[name] = list(lines)
    return decoded


def _truncate(token: str) -> int:
    # decimal coordinates are cut toward zero
    return int(float(token))


def parse_curve_points(tokens: List[str]) -> List[Tuple[int, int]]:
    points = []
    for token in tokens:
        x_str, sep, y_str = token.partition(':')
        if not sep:
            continue
        try:
            points.append((_truncate(x_str), _truncate(y_str)))
        except (ValueError, OverflowError):
            logger.debug("skipping unparseable curve point %r", token)
    return points


def _int_list(field: str, sep: str) -> List[int]:
    return [int(part) for part in field.split(sep) if part]


def _edge_sounds(field: str) -> List[int]:
    return _int_list(field, '|')


def _edge_sets(field: str) -> List[List[int]]:
    return [_int_list(s, ':') for s in field.split('|')]


def _timing_int(field: str) -> int:
    return int(float(field))


def _optional(parse, field: str, what: str, default):
    try:
        return parse(field)
    except (ValueError, OverflowError):
        logger.debug("ignoring malformed %s %r", what, field)
        return default


def parse_hit_object(line: str) -> HitObject:
    parts = line.split(',')
    if len(parts) < 5:
        raise ChartParseError(f"hit object needs at least 5 fields: {line!r}")
    try:
        x, y, time, type_, hit_sound = map(int, parts[:5])
    except ValueError as e:
        raise ChartParseError(f"bad hit object header {line!r}: {e}") from e

    params = parts[5:]
    hit_sample = DEFAULT_HIT_SAMPLE
    # edge sample sets also use colons but always hold several pipe-separated pairs
    if params and ':' in params[-1] and '|' not in params[-1]:
        hit_sample = params.pop()

    common = dict(hit_sound=hit_sound, new_combo=nth_bit_set(type_, 2), hit_sample=hit_sample)

    if nth_bit_set(type_, 1):
        if len(params) < 3:
            raise ChartParseError(f"slider needs curve, slides and length: {line!r}")
        curve = params[0].split('|')
        curve_points = parse_curve_points(curve[1:])
        try:
            slides = int(params[1])
            length = float(params[2])
        except ValueError as e:
            raise ChartParseError(f"bad slider parameters {line!r}: {e}") from e
        # optional fields, a bad value there does not cost the slider
        edge_sounds, edge_sets = [], []
        if len(params) > 3:
            edge_sounds = _optional(_edge_sounds, params[3], "edge sounds", [])
        if len(params) > 4:
            edge_sets = _optional(_edge_sets, params[4], "edge sets", [])
        return Slider(x, y, time, curve[0], curve_points, length, slides,
                      edge_sounds=edge_sounds, edge_sets=edge_sets, **common)

    if nth_bit_set(type_, 3):
        try:
            end_time = int(params[0])
        except (IndexError, ValueError) as e:
            raise ChartParseError(f"bad spinner end time {line!r}") from e
        return Spinner(x, y, time, end_time, **common)

    return HitCircle(x, y, time, **common)


def parse_hit_objects(hit_objects: List[str]) -> List[HitObject]:
    objects = []
    for line in hit_objects:
        try:
            objects.append(parse_hit_object(line))
        except ChartParseError as e:
            logger.warning("skipping hit object: %s", e)
    return objects


def parse_timing_point(line: str) -> TimingPoint:
    parts = line.split(',')
    if len(parts) < 2:
        raise ChartParseError(f"timing point needs time and beat length: {line!r}")
    try:
        time = float(parts[0])
        beat_length = float(parts[1])
    except ValueError as e:
        raise ChartParseError(f"bad timing point {line!r}: {e}") from e

    # only time and beat length are required, the rest fall back to defaults
    fields = {}
    for (name, default), part in zip(TIMING_FIELDS, parts[2:]):
        fields[name] = _optional(_timing_int, part, name, default)
    if fields.get("uninherited") is not None:
        fields["uninherited"] = fields["uninherited"] == 1
    return TimingPoint(time, beat_length, **fields)


def parse_timing_points(timing_lines: List[str]) -> List[TimingPoint]:
    points = []
    for line in timing_lines:
        try:
            points.append(parse_timing_point(line))
        except ChartParseError as e:
            logger.warning("skipping timing point: %s", e)
    return points


def _mapping(decoded: Dict[str, SectionValue], name: str) -> Dict[str, str]:
    section = decoded.get(name)
    return section if isinstance(section, dict) else {}


def parse_beatmap(osu_content: str, default_beat_length: float = DEFAULT_BEAT_LENGTH) -> Beatmap:
    sections = parse_osu_file(osu_content) or {}
    decoded = decode_sections(sections)

    version_lines = sections.get("Version", [])
    version = int(version_lines[0]) if version_lines and version_lines[0].isdigit() else 0

    beatmap = Beatmap(
        parse_hit_objects(sections.get("HitObjects", [])),
        parse_timing_points(sections.get("TimingPoints", [])),
        version=version,
        general=GeneralSettings(_mapping(decoded, "General")),
        metadata=MetadataSettings(_mapping(decoded, "Metadata")),
        editor=EditorSettings(_mapping(decoded, "Editor")),
        difficulty=DifficultySettings(_mapping(decoded, "Difficulty")),
        colours=Colours(_mapping(decoded, "Colours")),
        events=sections.get("Events", []),
        default_beat_length=default_beat_length,
    )
    logger.debug("parsed %s", beatmap)
    return beatmap


def load_beatmap(path: str, default_beat_length: float = DEFAULT_BEAT_LENGTH) -> Beatmap:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Beatmap file not found: {path}")
    with open(path, 'r', encoding='utf-8-sig', errors='replace') as f:
        return parse_beatmap(f.read(), default_beat_length)


def beatmaps_from_files(files: Mapping[str, bytes]) -> Dict[str, Beatmap]:
    """Decode every ``.osu`` entry of an already-extracted chart archive."""
    difficulties = {}
    for file_name, content in files.items():
        if not file_name.lower().endswith(".osu"):
            continue
        beatmap = parse_beatmap(content.decode('utf-8-sig', errors='replace'))
        difficulty = get_difficulty(os.path.basename(file_name)) or beatmap.metadata.version
        if not difficulty:
            logger.warning("Could not find difficulty for %s", file_name)
            continue
        difficulties[difficulty] = beatmap

    if not difficulties:
        logger.warning("No .osu files found among %d archive entries", len(files))
    return difficulties
