"""HTTP server module for frameshop.

Serves the video library, the player page's controls and scan state,
and the scan-products classification endpoint the HTTP classifier
talks to.
"""
