"""
CLI entry point for the ran-handover command.
"""
import sys

from handover_engine.runner import main

# Re-export main for the console_scripts entry point
__all__ = ['main']

if __name__ == '__main__':
    sys.exit(main())
