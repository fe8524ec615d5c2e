"""Unit tests for electronqa.platforms — name tokenization and inference."""

from __future__ import annotations

from pathlib import Path

import pytest

from electronqa.errors import UnsupportedPlatformError
from electronqa.platforms import (
    ARCH_TOKENS,
    PLATFORM_TOKENS,
    Architecture,
    Platform,
    app_name_prefix,
    arch_from_name,
    infer_platform,
    is_build_dir_name,
    platform_from_name,
    tokenize,
)


class TestVocabulary:
    def test_platform_vocabularies_are_disjoint(self):
        sets = list(PLATFORM_TOKENS.values())
        for i, a in enumerate(sets):
            for b in sets[i + 1:]:
                assert not a & b

    def test_arch_vocabularies_are_disjoint(self):
        sets = list(ARCH_TOKENS.values())
        for i, a in enumerate(sets):
            for b in sets[i + 1:]:
                assert not a & b

    def test_tokenize_keeps_x86_64_whole(self):
        assert tokenize("My-App.linux x86_64") == ["my", "app", "linux", "x86_64"]

    def test_tokenize_splits_underscores(self):
        assert tokenize("myapp_linux_x86_64") == ["myapp", "linux", "x86_64"]


# ---------------------------------------------------------------------------
# Platform from directory names
# ---------------------------------------------------------------------------

class TestPlatformFromName:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("my-app-darwin-arm64", Platform.DARWIN),
            ("my-app-mac-x64", Platform.DARWIN),
            ("My-App-MacOS", Platform.DARWIN),
            ("my-app-win32-x64", Platform.WIN32),
            ("my-app-windows", Platform.WIN32),
            ("my-app-linux-x64", Platform.LINUX),
            ("my-app-ubuntu", Platform.LINUX),
            ("my-app-debian", Platform.LINUX),
            ("myapp_linux_x64", Platform.LINUX),
            ("MyApp_Win32_x64", Platform.WIN32),
        ],
    )
    def test_recognized(self, name: str, expected: Platform):
        assert platform_from_name(name) is expected

    def test_darwin_is_not_read_as_windows(self):
        assert platform_from_name("darwin") is Platform.DARWIN

    def test_substring_does_not_match(self):
        assert platform_from_name("twinkle-app") is Platform.UNKNOWN
        assert platform_from_name("macaroni") is Platform.UNKNOWN

    def test_unknown(self):
        assert platform_from_name("my-app-freebsd") is Platform.UNKNOWN


class TestIsBuildDirName:
    def test_platform_directories(self):
        assert is_build_dir_name("my-app-darwin-arm64")
        assert is_build_dir_name("my-app-linux-x64")

    def test_make_output_is_not_a_build(self):
        assert not is_build_dir_name("make")

    def test_debian_only_is_not_a_build_dir(self):
        assert not is_build_dir_name("my-app-debian")


class TestArchFromName:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("my-app-darwin-arm64", Architecture.ARM64),
            ("my-app-linux-aarch64", Architecture.ARM64),
            ("my-app-win32-x64", Architecture.X64),
            ("my-app-linux-x86_64", Architecture.X64),
            ("my-app-win32-ia32", Architecture.X32),
            ("my-app-linux-i686", Architecture.X32),
        ],
    )
    def test_recognized(self, name: str, expected: Architecture):
        assert arch_from_name(name) is expected

    def test_missing_arch(self):
        assert arch_from_name("my-app-darwin") is Architecture.UNKNOWN


# ---------------------------------------------------------------------------
# infer_platform()
# ---------------------------------------------------------------------------

class TestInferPlatform:
    def test_build_directory(self):
        path = Path("/builds/my-app-linux-x64")
        assert infer_platform(path) == (Platform.LINUX, path, None)

    def test_app_bundle_selects_bundle(self):
        bundle = Path("/builds/anything/My App.app")
        assert infer_platform(bundle) == (Platform.DARWIN, bundle.parent, bundle)

    def test_exe_selects_executable(self):
        exe = Path("/builds/my-app-win32-x64/My App.EXE")
        assert infer_platform(exe) == (Platform.WIN32, exe.parent, exe)

    def test_no_platform_token(self):
        with pytest.raises(UnsupportedPlatformError, match="Platform not found") as exc_info:
            infer_platform(Path("/builds/my-app"))
        assert exc_info.value.path == Path("/builds/my-app")


class TestAppNamePrefix:
    def test_strips_platform_and_arch(self):
        assert app_name_prefix("my-app-win32-x64") == "my-app"

    def test_starts_with_platform(self):
        assert app_name_prefix("linux-unpacked") == ""

    def test_no_platform(self):
        assert app_name_prefix("my-app") == "my-app"

    def test_underscore_separated(self):
        assert app_name_prefix("my_app_linux_x64") == "my_app"
