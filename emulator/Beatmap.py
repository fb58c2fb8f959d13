import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from emulator.objects import HitCircle, HitObject, Slider, Spinner
from emulator.timing import DEFAULT_BEAT_LENGTH, TimingParser, TimingPoint

logger = logging.getLogger(__name__)


def _number(values, key, default):
    raw = values.get(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("ignoring non-numeric %s value %r", key, raw)
        return default


@dataclass(frozen=True)
class Section:
    values: Mapping[str, str] = field(default_factory=dict)

    def get(self, key, default=None):
        return self.values.get(key, default)


@dataclass(frozen=True)
class GeneralSettings(Section):
    @property
    def audio_filename(self) -> str:
        return self.values.get("AudioFilename", "")

    @property
    def audio_lead_in(self) -> float:
        return _number(self.values, "AudioLeadIn", 0.0)

    @property
    def preview_time(self) -> float:
        return _number(self.values, "PreviewTime", -1.0)

    @property
    def countdown(self) -> int:
        return int(_number(self.values, "Countdown", 1))

    @property
    def sample_set(self) -> str:
        return self.values.get("SampleSet", "Normal")

    @property
    def stack_leniency(self) -> float:
        return _number(self.values, "StackLeniency", 0.7)

    @property
    def mode(self) -> int:
        return int(_number(self.values, "Mode", 0))

    @property
    def letterbox_in_breaks(self) -> bool:
        return bool(_number(self.values, "LetterboxInBreaks", 0))

    @property
    def widescreen_storyboard(self) -> bool:
        return bool(_number(self.values, "WidescreenStoryboard", 0))


@dataclass(frozen=True)
class MetadataSettings(Section):
    @property
    def title(self) -> str:
        return self.values.get("Title", "")

    @property
    def title_unicode(self) -> str:
        return self.values.get("TitleUnicode", "") or self.title

    @property
    def artist(self) -> str:
        return self.values.get("Artist", "")

    @property
    def artist_unicode(self) -> str:
        return self.values.get("ArtistUnicode", "") or self.artist

    @property
    def creator(self) -> str:
        return self.values.get("Creator", "")

    @property
    def version(self) -> str:
        return self.values.get("Version", "")

    @property
    def source(self) -> str:
        return self.values.get("Source", "")

    @property
    def tags(self) -> List[str]:
        return self.values.get("Tags", "").split()


@dataclass(frozen=True)
class EditorSettings(Section):
    @property
    def distance_spacing(self) -> float:
        return _number(self.values, "DistanceSpacing", 1.0)

    @property
    def beat_divisor(self) -> int:
        return int(_number(self.values, "BeatDivisor", 4))

    @property
    def grid_size(self) -> int:
        return int(_number(self.values, "GridSize", 4))

    @property
    def timeline_zoom(self) -> float:
        return _number(self.values, "TimelineZoom", 1.0)


@dataclass(frozen=True)
class DifficultySettings(Section):
    @property
    def hp_drain_rate(self) -> float:
        return _number(self.values, "HPDrainRate", 5.0)

    @property
    def circle_size(self) -> float:
        return _number(self.values, "CircleSize", 5.0)

    @property
    def overall_difficulty(self) -> float:
        return _number(self.values, "OverallDifficulty", 5.0)

    @property
    def approach_rate(self) -> float:
        # older charts have no approach rate and reuse the overall difficulty
        return _number(self.values, "ApproachRate", self.overall_difficulty)

    @property
    def slider_multiplier(self) -> float:
        return _number(self.values, "SliderMultiplier", 1.4) or 1.4

    @property
    def slider_tick_rate(self) -> float:
        return _number(self.values, "SliderTickRate", 1.0)


@dataclass(frozen=True)
class Colours(Section):
    @property
    def combo_colours(self) -> List[Tuple[int, ...]]:
        combos = sorted(
            (key for key in self.values if key.startswith("Combo") and key[5:].isdigit()),
            key=lambda key: int(key[5:]),
        )
        colours = []
        for key in combos:
            try:
                colours.append(tuple(int(part) for part in self.values[key].split(",")))
            except ValueError:
                logger.warning("ignoring malformed colour %s: %r", key, self.values[key])
        return colours


class Beatmap:
    """A loaded chart: settings, timing points and hit objects.

    Replaced wholesale when another chart is loaded; the only state that changes
    afterwards is each hit object's retirement flag.
    """

    def __init__(self, hit_objects: List[HitObject], timing_points: List[TimingPoint],
                 version: int = 0,
                 general: Optional[GeneralSettings] = None,
                 metadata: Optional[MetadataSettings] = None,
                 editor: Optional[EditorSettings] = None,
                 difficulty: Optional[DifficultySettings] = None,
                 colours: Optional[Colours] = None,
                 events: Optional[List[str]] = None,
                 default_beat_length: float = DEFAULT_BEAT_LENGTH):
        self.hit_objects = list(hit_objects)
        self.timing_points = list(timing_points)
        self.version = version
        self.general = general or GeneralSettings()
        self.metadata = metadata or MetadataSettings()
        self.editor = editor or EditorSettings()
        self.difficulty = difficulty or DifficultySettings()
        self.colours = colours or Colours()
        self.events = list(events or [])
        self.timing_parser = TimingParser(self.timing_points, default_beat_length)

    @property
    def name(self):
        return f"{self.metadata.artist} - {self.metadata.title} [{self.metadata.version}]"

    @property
    def circles(self) -> List[HitCircle]:
        return [obj for obj in self.hit_objects if isinstance(obj, HitCircle)]

    @property
    def sliders(self) -> List[Slider]:
        return [obj for obj in self.hit_objects if isinstance(obj, Slider)]

    @property
    def spinners(self) -> List[Spinner]:
        return [obj for obj in self.hit_objects if isinstance(obj, Spinner)]

    def beat_length_at(self, time: float) -> float:
        return self.timing_parser.beat_length_at(time)

    def counts(self) -> Dict[str, int]:
        return {
            "circles": len(self.circles),
            "sliders": len(self.sliders),
            "spinners": len(self.spinners),
        }

    def __str__(self):
        return f"Beatmap {self.name} with {len(self.hit_objects)} hit objects and {len(self.timing_points)} timing points"
