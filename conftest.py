import pytest

from chartio.osu_parser import parse_beatmap

SAMPLE_CHART = """osu file format v14

[General]
AudioFilename: audio.mp3
AudioLeadIn: 250
Mode: 0

[Metadata]
Title:Test Song
Artist:Someone
Creator:Mapper
Version:Normal
Tags:test sample

[Difficulty]
HPDrainRate:5
CircleSize:4
OverallDifficulty:6
ApproachRate:8
SliderMultiplier:1.4
SliderTickRate:1

[Events]
//Background and Video events
0,0,"bg.jpg",0,0

[TimingPoints]
1000,500,4,2,0,60,1,0
3000,-50,4,2,0,60,0,1
5000,250,4,2,0,60,1,0

[Colours]
Combo1 : 255,128,0
Combo2 : 0,202,0

[HitObjects]
64,96,1000,1,0,0:0:0:0:
100,100,1500,2,0,L|240:100,1,140
256,192,3000,6,0,B|300:100|300:100|400:192,2,200,2|0|0,0:0|0:0|0:0,0:0:0:0:
256,192,6000,12,0,7000,0:0:0:0:
"""


@pytest.fixture
def sample_chart():
    return SAMPLE_CHART


@pytest.fixture
def beatmap():
    return parse_beatmap(SAMPLE_CHART)


@pytest.fixture
def chart_file(tmp_path):
    path = tmp_path / "Someone - Test Song (Mapper) [Normal].osu"
    path.write_text(SAMPLE_CHART, encoding="utf-8")
    return path
