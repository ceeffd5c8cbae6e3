# gloss_annote/__init__.py
'''
gloss_annote/
    __init__.py
    __main__.py            # argparse: desktop client (default) or `serve`

    app.py                 # QApplication + login + boot
    main_window.py         # QMainWindow layout + wiring

    config.py              # env-driven client/server settings, token persistence
    logger.py              # package logger, colored console + optional log file
    domain.py              # dataclasses: Segment, Task, TaskCategory, SignedVideoUrl; status helpers
    intervals.py           # even split, split move with clamping, partition checks
    timeutils.py           # seconds<->ms/text, timeline pixel geometry
    persistence.py         # atomic JSON writes, annotation export/import files
    workspace.py           # editing session of one task: dirty flag, save/reset/refresh
    store_client.py        # HTTP client for the annotation store
    push.py                # SSE listener thread for "annotations updated" broadcasts

    widgets/
      timeline_editor.py   # segment bar with draggable split handles + playhead
      video_panel.py       # single video player + segment playback
      task_list.py         # categories/tasks tree with status colors
      gloss_panel.py       # gloss list + color squares
      annotation_list.py   # saved annotations table + play buttons
      busy_overlay.py      # input-blocking cover during save/delete

    dialogs/
      login.py             # password sign-in dialog

    server/
      __init__.py          # Flask app factory
      routes.py            # /api endpoints
      storage.py           # JSON-file annotation store
      events.py            # SSE broadcaster
      auth.py              # bearer tokens + signed video URLs
'''

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
