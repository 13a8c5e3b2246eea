import tomllib

import pytest

from jamtools.buildpack_config import (
    BuildpackConfig,
    BuildpackConfigError,
    BuildpackConfigOrder,
    BuildpackConfigOrderGroup,
    BuildpackConfigStack,
    BuildpackConfigTarget,
    overwrite_buildpack_config,
    parse_buildpack_config,
)

FIRST = "some-repository/some-buildpack-id"
LAST = "some-repository/last-buildpack-id"
OTHER = "some-repository/other-buildpack-id"

BUILDPACK_TOML = f"""
api = "0.6"
buildpack.id = "some-buildpack"
buildpack.name = "Some Buildpack"
buildpack.version = "some-buildpack-version"
buildpack.homepage = "some-buildpack-homepage"
buildpack.description = "some-buildpack-description"
buildpack.keywords = ["some-buildpack-keyword"]
buildpack.licenses = [
  {{ type = "some-buildpack-license-type", uri = "some-buildpack-license-uri" }},
]
metadata.include-files = ["buildpack.toml"]
order = [
  {{ group = [{{ id = "{FIRST}", version = "0.20.1" }}, {{ id = "{LAST}" }}] }},
  {{ group = [{{ id = "{OTHER}", version = "0.1.0", optional = true }}] }},
]
stacks = [{{ id = "*" }}]
targets = [{{ os = "linux", arch = "amd64" }}, {{ os = "linux", arch = "arm64" }}]
"""

BUILDPACK_TABLE = {
    "id": "some-buildpack",
    "name": "Some Buildpack",
    "version": "some-buildpack-version",
    "homepage": "some-buildpack-homepage",
    "description": "some-buildpack-description",
    "keywords": ["some-buildpack-keyword"],
    "licenses": [
        {"type": "some-buildpack-license-type", "uri": "some-buildpack-license-uri"},
    ],
}


@pytest.fixture
def buildpack_file(tmp_path):
    path = tmp_path / "buildpack.toml"
    path.write_text(BUILDPACK_TOML)
    return path


@pytest.fixture
def previous_file(tmp_path):
    path = tmp_path / "buildpack.toml"
    path.write_text("previous contents of the file")
    return path


def test_parses_buildpack_toml(buildpack_file):
    config = parse_buildpack_config(buildpack_file)
    assert config == BuildpackConfig(
        api="0.6",
        buildpack=BUILDPACK_TABLE,
        metadata={"include-files": ["buildpack.toml"]},
        order=[
            BuildpackConfigOrder(
                group=[
                    BuildpackConfigOrderGroup(id=FIRST, version="0.20.1"),
                    BuildpackConfigOrderGroup(id=LAST),
                ]
            ),
            BuildpackConfigOrder(
                group=[BuildpackConfigOrderGroup(id=OTHER, version="0.1.0", optional=True)]
            ),
        ],
        stacks=[BuildpackConfigStack(id="*")],
        targets=[
            BuildpackConfigTarget(os="linux", arch="amd64"),
            BuildpackConfigTarget(os="linux", arch="arm64"),
        ],
    )


def test_parse_missing_file(tmp_path):
    with pytest.raises(BuildpackConfigError, match="failed to open buildpack config file:") as info:
        parse_buildpack_config(tmp_path / "missing.toml")
    assert "no such file or directory" in str(info.value).lower()


def test_parse_malformed_contents(buildpack_file):
    buildpack_file.write_text("%%%")
    with pytest.raises(BuildpackConfigError, match="failed to parse buildpack config:") as info:
        parse_buildpack_config(buildpack_file)
    assert isinstance(info.value.__cause__, tomllib.TOMLDecodeError)


def test_overwrites_buildpack_toml(previous_file):
    overwrite_buildpack_config(
        previous_file,
        BuildpackConfig(
            api="0.6",
            buildpack=BUILDPACK_TABLE,
            metadata={"include-files": ["buildpack.toml"]},
            order=[
                BuildpackConfigOrder(
                    group=[
                        BuildpackConfigOrderGroup(id=FIRST, version="0.20.1"),
                        BuildpackConfigOrderGroup(id=LAST, version="0.2.0"),
                    ]
                ),
                BuildpackConfigOrder(
                    group=[BuildpackConfigOrderGroup(id=OTHER, version="0.1.0", optional=True)]
                ),
            ],
        ),
    )
    expected = {
        "api": "0.6",
        "buildpack": BUILDPACK_TABLE,
        "metadata": {"include-files": ["buildpack.toml"]},
        "order": [
            {"group": [{"id": FIRST, "version": "0.20.1"}, {"id": LAST, "version": "0.2.0"}]},
            {"group": [{"id": OTHER, "version": "0.1.0", "optional": True}]},
        ],
    }
    assert tomllib.loads(previous_file.read_text()) == expected


def test_overwrite_then_parse_round_trips(buildpack_file):
    original = parse_buildpack_config(buildpack_file)
    overwrite_buildpack_config(buildpack_file, original)
    assert parse_buildpack_config(buildpack_file) == original


def test_overwrite_missing_file(tmp_path):
    with pytest.raises(BuildpackConfigError, match="failed to open buildpack config file:") as info:
        overwrite_buildpack_config(tmp_path / "missing.toml", BuildpackConfig())
    assert "no such file or directory" in str(info.value).lower()


def test_overwrite_unencodable_config(previous_file):
    with pytest.raises(BuildpackConfigError, match="failed to write buildpack config:"):
        overwrite_buildpack_config(previous_file, BuildpackConfig(api=lambda: None))