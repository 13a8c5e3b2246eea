import io
import tarfile
from dataclasses import dataclass, field

import pytest

from jamtools.matchers import HaveDirectory, HaveFile, HaveFileWithContent, MatchTomlContent

EXAMPLE_TOML = """
				api = "0.2"

				[buildpack]
					id = "some-buildpack"
					name = "Some Buildpack"
					version = "some-buildpack-version"
"""


def _tar(entries):
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as archive:
        for name, content in entries:
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                archive.addfile(info)
            else:
                data = content.encode()
                info.size = len(data)
                archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


@dataclass
class FakeLayer:
    data: bytes
    digest: str = "sha256:layer-digest"

    def uncompressed(self):
        return io.BytesIO(self.data)

    def diff_id(self):
        return self.digest


@dataclass
class FakeImage:
    items: list = field(default_factory=list)

    def layers(self):
        return list(self.items)

    def config_name(self):
        return "sha256:config-digest"


class ContainSubstring:
    def __init__(self, substring):
        self.substring = substring

    def match(self, actual):
        return self.substring in actual

    def failure_message(self, actual):
        return f"expected {actual!r} to contain {self.substring!r}"

    def negated_failure_message(self, actual):
        return f"expected {actual!r} not to contain {self.substring!r}"


@pytest.fixture
def image():
    base = FakeLayer(
        _tar([("etc", None), ("etc/os-release", "NAME=Alpine\nVERSION_ID=3.19\n"), ("tmp", None)])
    )
    top = FakeLayer(_tar([("usr", None), ("usr/bin/tool", "binary")]))
    return FakeImage([base, top])


def test_have_directory_matches(image):
    assert HaveDirectory("/tmp").match(image) is True


def test_have_directory_missing(image):
    assert HaveDirectory("/no/such/directory").match(image) is False


def test_have_directory_rejects_file(image):
    assert HaveDirectory("/etc/os-release").match(image) is False


def test_have_directory_failure_message(image):
    message = HaveDirectory("/tmp").failure_message(image)
    assert message.endswith("to have directory with path\n\t'/tmp'")


def test_have_file_matches(image):
    assert HaveFile("/etc/os-release").match(image) is True


def test_have_file_missing(image):
    assert HaveFile("/no/such/file").match(image) is False


def test_have_file_rejects_directory(image):
    assert HaveFile("/etc").match(image) is False


def test_have_file_on_single_layer():
    layer = FakeLayer(_tar([("usr/bin/tool", "binary")]))
    assert HaveFile("/usr/bin/.*").match(layer) is True


def test_have_file_empty_layer():
    assert HaveFile("/anything").match(FakeLayer(b"")) is False


def test_have_file_requires_string_path(image):
    with pytest.raises(TypeError, match="expected must be a <string>"):
        HaveFile(42).match(image)


def test_have_file_negated_message(image):
    message = HaveFile("/x").negated_failure_message(image)
    assert "not to have file with path" in message


def test_have_file_with_content_matches(image):
    matcher = HaveFileWithContent("/etc/os-release", ContainSubstring("VERSION"))
    assert matcher.match(image) is True


def test_have_file_with_content_mismatch(image):
    matcher = HaveFileWithContent("/etc/os-release", ContainSubstring("no such content"))
    assert matcher.match(image) is False
    assert matcher.failure_message(image) == (
        "expected 'NAME=Alpine\\nVERSION_ID=3.19\\n' to contain 'no such content'"
    )


def test_have_file_with_content_missing_file(image):
    matcher = HaveFileWithContent("/no/such/directory", "no such content")
    assert matcher.match(image) is False
    assert matcher.failure_message(image) == (
        "Expected\n\timage sha256:config-digest\nto have file\n\t'/no/such/directory'"
    )


def test_have_file_with_content_string_equality():
    layer = FakeLayer(_tar([("hello.txt", "world")]))
    assert HaveFileWithContent("/hello.txt", "world").match(layer) is True
    assert HaveFileWithContent("/hello.txt", "other").match(layer) is False


def test_have_file_with_content_layer_name():
    layer = FakeLayer(_tar([]))
    matcher = HaveFileWithContent("/missing", "x")
    assert matcher.match(layer) is False
    assert "layer sha256:layer-digest" in matcher.negated_failure_message(layer)


def test_have_file_with_content_rejects_bad_matcher(image):
    with pytest.raises(TypeError, match="expected must be a <string> or matcher"):
        HaveFileWithContent("/etc/os-release", 123).match(image)


@pytest.fixture
def example_toml(tmp_path):
    path = tmp_path / "example.toml"
    path.write_text(EXAMPLE_TOML)
    return path


def test_match_toml_content_matches(example_toml, tmp_path):
    matching = tmp_path / "matching.toml"
    matching.write_text(EXAMPLE_TOML)
    assert MatchTomlContent(example_toml).match(str(matching)) is True


def test_match_toml_content_differs(example_toml, tmp_path):
    matching = tmp_path / "matching.toml"
    matching.write_text("")
    assert MatchTomlContent(example_toml).match(str(matching)) is False


def test_match_toml_content_requires_path(example_toml):
    with pytest.raises(TypeError, match="MatchTomlContent matcher expects a file path"):
        MatchTomlContent(example_toml).match(123)


def test_match_toml_content_actual_unreadable(example_toml, tmp_path):
    with pytest.raises(FileNotFoundError):
        MatchTomlContent(example_toml).match(str(tmp_path / "matching.toml"))


def test_match_toml_content_expected_unreadable(tmp_path):
    matching = tmp_path / "matching.toml"
    matching.write_text("")
    with pytest.raises(FileNotFoundError):
        MatchTomlContent(tmp_path / "example.toml").match(str(matching))


def test_match_toml_content_messages(example_toml):
    matcher = MatchTomlContent(example_toml)
    assert matcher.failure_message("a.toml") == (
        f"Expected\na.toml contents\nto match the contents of \n{example_toml}"
    )
    assert "not to match" in matcher.negated_failure_message("a.toml")