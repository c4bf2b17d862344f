#!/usr/bin/env python
"""
Runs the Django test suite for every DressSync app
Usage: python Doc/run_tests.py [app ...]
"""
import os
import sys
from pathlib import Path

import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'backend.core',
    'backend.database',
    'backend.catalog',
    'backend.inventory',
    'backend.parties',
    'backend.orders',
    'backend.tables',
    'backend.reports',
    'backend.install',
]

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests(sys.argv[1:] or APPS)
    sys.exit(bool(failures))
