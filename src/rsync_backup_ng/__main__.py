"""rsync-backup-ng: rsync_backup_ng/__main__.py.

Back up directories to a removable volume with rsync, keeping the previous
versions of changed files in a directory per day.
"""

import sys

from .cli.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
