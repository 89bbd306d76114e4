#!/usr/bin/env python
"""
빌드 도구 점검 스크립트.

확인 항목:
- Cordova CLI 실행 가능 여부 (<toolchain.command> --version)
- Android SDK 환경 변수 (ANDROID_HOME 또는 ANDROID_SDK_ROOT)
- JAVA_HOME

실행:
    python scripts/check_toolchain.py
"""

import asyncio
import os
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.app.main import load_config  # noqa: E402
from src.app.services.pipeline import PipelineSettings  # noqa: E402
from src.core.toolchain import CordovaToolchain  # noqa: E402


async def check_cordova(toolchain: CordovaToolchain) -> bool:
    """Cordova CLI 점검."""
    print("\n" + "=" * 60)
    print("🧪 Cordova CLI")
    print("=" * 60)

    result = await toolchain.version()
    if result.not_found:
        print(f"❌ 실행 파일을 찾을 수 없습니다: {' '.join(toolchain.command)}")
        print("   npm install -g cordova 로 설치하세요.")
        return False
    if not result.ok:
        print(f"❌ 실행 실패 (exit {result.exit_code})")
        print(f"   {result.diagnostics.strip()[:500]}")
        return False

    print(f"✅ Cordova {result.stdout.strip()}")
    return True


def check_env(names: tuple[str, ...], label: str) -> bool:
    """환경 변수 중 하나라도 존재하는 디렉터리를 가리키는지 점검."""
    print("\n" + "=" * 60)
    print(f"🧪 {label}")
    print("=" * 60)

    for name in names:
        value = os.environ.get(name)
        if not value:
            continue
        if Path(value).is_dir():
            print(f"✅ {name}={value}")
            return True
        print(f"❌ {name}={value} (디렉터리 없음)")
        return False

    print(f"❌ {' / '.join(names)}가 설정되지 않았습니다.")
    return False


async def main() -> int:
    """메인 점검 실행."""
    print("🚀 빌드 도구 점검 시작")
    print("=" * 60)

    project_root = Path(__file__).parent.parent
    settings = PipelineSettings.from_config(load_config(), project_root)
    toolchain = CordovaToolchain(command=settings.toolchain_command, timeouts=settings.timeouts)

    results = {
        "cordova": await check_cordova(toolchain),
        "android_sdk": check_env(("ANDROID_HOME", "ANDROID_SDK_ROOT"), "Android SDK"),
        "java": check_env(("JAVA_HOME",), "Java"),
    }

    # 결과 요약
    print("\n" + "=" * 60)
    print("📊 점검 결과 요약")
    print("=" * 60)

    all_passed = True
    for name, passed in results.items():
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"  {name}: {status}")
        if not passed:
            all_passed = False

    print("=" * 60)
    if all_passed:
        print("🎉 APK 빌드 준비 완료!")
    else:
        print("⚠️ 일부 항목 실패. 빌드가 실패할 수 있습니다.")

    return 0 if all_passed else 1


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
