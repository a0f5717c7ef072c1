"""
comp-repos - Multi-repository setup for the CyTOF compendium project
"""

from .__version__ import __version__
from .core import BranchAdder, RepoSetup
from .cli.main import main

__all__ = ["BranchAdder", "RepoSetup", "main", "__version__"]
