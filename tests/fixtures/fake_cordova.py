#!/usr/bin/env python
"""
테스트용 가짜 Cordova CLI.

지원 명령:
    create <path> <id> <name>
    platform add <platform> [--save]
    build <platform> [--release]
    --version

환경 변수:
    FAKE_CORDOVA_FAIL=<create|platform|build>  해당 명령 exit 1 (stderr 출력)
    FAKE_CORDOVA_HANG=<create|platform|build>  해당 명령에서 오래 대기 (timeout 테스트)
    FAKE_CORDOVA_SKIP_ARTIFACT=1               build 성공, 단 APK 미생성
    FAKE_CORDOVA_LOG=<path>                     호출 argv를 JSON 한 줄씩 기록

build는 www/를 APK(zip)의 assets/www/ 아래에 담음.
"""

import json
import os
import sys
import time
import zipfile
from pathlib import Path

DEFAULT_INDEX = """<!DOCTYPE html>
<html>
<head><title>Hello World</title></head>
<body><div class="app"><h1>Apache Cordova</h1></div></body>
</html>
"""

CONFIG_TEMPLATE = """<?xml version='1.0' encoding='utf-8'?>
<widget id="{package_id}" version="1.0.0" xmlns="http://www.w3.org/ns/widgets" xmlns:cdv="http://cordova.apache.org/ns/1.0">
    <name>{name}</name>
    <description>Sample Apache Cordova App</description>
    <content src="index.html" />
    <allow-intent href="http://*/*" />
    <allow-intent href="https://*/*" />
    <icon src="res/icon.png" />
</widget>
"""

APK_PATH = Path("platforms", "android", "app", "build", "outputs", "apk", "release", "app-release-unsigned.apk")


def fail_if_requested(subcommand: str) -> None:
    if os.environ.get("FAKE_CORDOVA_HANG") == subcommand:
        time.sleep(60)
    if os.environ.get("FAKE_CORDOVA_FAIL") == subcommand:
        print(f"Error: fake {subcommand} failure", file=sys.stderr)
        sys.exit(1)


def create(path: str, package_id: str, name: str) -> None:
    project_dir = Path(path)
    if project_dir.exists():
        print(f"Error: path already exists: {path}", file=sys.stderr)
        sys.exit(1)

    project_dir.mkdir(parents=True)
    if os.environ.get("FAKE_CORDOVA_FAIL") == "create":
        # 실제 CLI처럼 부분 생성 후 실패
        (project_dir / "partial").write_text("x")
    fail_if_requested("create")

    (project_dir / "www" / "css").mkdir(parents=True)
    (project_dir / "www" / "index.html").write_text(DEFAULT_INDEX, encoding="utf-8")
    (project_dir / "www" / "css" / "index.css").write_text("body {}", encoding="utf-8")
    (project_dir / "config.xml").write_text(
        CONFIG_TEMPLATE.format(package_id=package_id, name=name),
        encoding="utf-8",
    )
    print(f"Creating a new cordova project. {package_id}")


def platform_add(platform: str) -> None:
    fail_if_requested("platform")
    if not Path("config.xml").exists():
        print("Current working directory is not a Cordova-based project.", file=sys.stderr)
        sys.exit(1)
    Path("platforms", platform).mkdir(parents=True, exist_ok=True)
    print(f"Adding {platform} project...")


def build(platform: str) -> None:
    fail_if_requested("build")
    if not Path("platforms", platform).is_dir():
        print(f"Platform {platform} not added.", file=sys.stderr)
        sys.exit(1)
    if os.environ.get("FAKE_CORDOVA_SKIP_ARTIFACT"):
        print("BUILD SUCCESSFUL")
        return

    APK_PATH.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(APK_PATH, "w") as apk:
        for file in sorted(Path("www").rglob("*")):
            if file.is_file():
                apk.write(file, "assets/" + file.as_posix())
        icon = Path("res", "icon", "android", "icon.png")
        if icon.is_file():
            apk.write(icon, "res/mipmap/icon.png")
        apk.write("config.xml", "res/xml/config.xml")
    print("BUILD SUCCESSFUL")


def main(argv: list[str]) -> int:
    log_path = os.environ.get("FAKE_CORDOVA_LOG")
    if log_path:
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps({"argv": argv, "cwd": os.getcwd()}) + "\n")

    if argv == ["--version"]:
        print("12.0.0")
        return 0
    if len(argv) == 4 and argv[0] == "create":
        create(argv[1], argv[2], argv[3])
        return 0
    if len(argv) >= 3 and argv[:2] == ["platform", "add"]:
        platform_add(argv[2])
        return 0
    if len(argv) >= 2 and argv[0] == "build":
        build(argv[1])
        return 0

    print(f"Unknown command: {' '.join(argv)}", file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
