#!/usr/bin/env python3
"""Backup runner (invoke from cron / Task Scheduler)"""
import sys
from pgbackup.cli import main

if __name__ == '__main__':
    sys.exit(main())
