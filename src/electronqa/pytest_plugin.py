"""pytest plugin: fixtures for end-to-end tests of a packaged Electron build.

Registered through the ``pytest11`` entry point, so installing electronqa
makes these available everywhere:

- ``electronqa_config``: ``.electronqa/config.yaml`` (or defaults)
- ``electron_build``: path of the build under test (``--electron-build``, else
  the newest build in ``--electron-out`` / ``output_dir``)
- ``electron_app_info``: the parsed ``AppBundleInfo``
- ``electron_app``: a launched app, closed after the module whatever the
  outcome
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from electronqa.bundle import AppBundleInfo, parse_electron_app
from electronqa.config import ElectronQAConfig
from electronqa.engine.launcher import ElectronApp, launch_app
from electronqa.locator import find_latest_build


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("electronqa")
    group.addoption(
        "--electron-out",
        default=None,
        help="Directory holding packaged builds (default: output_dir from config, else ./out).",
    )
    group.addoption(
        "--electron-build",
        default=None,
        help="Build directory, .app bundle or .exe to test instead of the newest build.",
    )


@pytest.fixture(scope="session")
def electronqa_config(request: pytest.FixtureRequest) -> ElectronQAConfig:
    config = ElectronQAConfig.discover(Path(str(request.config.rootpath)))
    out = request.config.getoption("--electron-out")
    if out:
        config.output_dir = Path(out)
    return config


@pytest.fixture(scope="session")
def electron_build(request: pytest.FixtureRequest, electronqa_config: ElectronQAConfig) -> Path:
    explicit = request.config.getoption("--electron-build")
    if explicit:
        return Path(explicit).resolve()
    return find_latest_build(electronqa_config.output_dir).path


@pytest.fixture(scope="session")
def electron_app_info(electron_build: Path) -> AppBundleInfo:
    return parse_electron_app(electron_build)


@pytest.fixture(scope="module")
def electron_app(
    electron_app_info: AppBundleInfo, electronqa_config: ElectronQAConfig
) -> Iterator[ElectronApp]:
    app = launch_app(electron_app_info, config=electronqa_config)
    try:
        yield app
    finally:
        app.close()
