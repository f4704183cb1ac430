"""
Manifest lookup for PkgSweep.

This package reads per-package manifest files to find the display name a
package advertises, which is usually friendlier than its declared name.
"""
