"""Terminal display for site directories.

Modules
-------
renderer
    ``DirectoryRenderer`` turns ``SiteRecord`` snapshots and verified
    envelopes into Rich renderables.
"""

from sitemesh.monitor.renderer import DirectoryRenderer

__all__ = ["DirectoryRenderer"]
