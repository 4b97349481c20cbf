import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.mark.parametrize('module', ['hems.urls', 'core.routers', 'core.exceptions', 'core.authentication'])
def test_module_imports_in_fresh_interpreter(module):
    # a fresh process catches import cycles that pytest's warm module cache hides
    code = f'import django; django.setup(); import {module}; import hems.urls'
    env = {**os.environ, 'DJANGO_SETTINGS_MODULE': 'hems.settings'}
    result = subprocess.run(
        [sys.executable, '-c', code], cwd=PROJECT_ROOT, env=env, capture_output=True, text=True, timeout=120,
    )
    assert result.returncode == 0, result.stderr
