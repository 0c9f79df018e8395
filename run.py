"""
dma-admin launcher

使用方法:
    python run.py run isolate
    python run.py prune-dms
    python run.py sign

See `python run.py --help` for all commands.
"""
import sys

from dma_admin.cli import main

if __name__ == '__main__':
    sys.exit(main())
