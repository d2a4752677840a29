"""Module-graph checker for JavaScript/TypeScript projects.

Modules:
- aliases.py: Alias discovery from jsconfig/tsconfig, babel, webpack, vite and Next.js.
- config_modules.py: Static (or opt-in node) evaluation of build-tool config files.
- resolver.py: Import specifier resolution to project files or external modules.
- extract.py: tree-sitter extraction of imports, exports and code issues.
- facts.py: Per-run cache of extracted module facts.
- imports.py: Classification of static and dynamic imports.
- exports.py: Named-import and re-export validation, one hop deep.
- analyzer.py: File and directory analysis entry points.
- fs_scan.py: Source file discovery with ignore globs.
- summarize.py: Run-wide summary counters.
- config.py: .analyzerconfig.json loading and option merging.
- report.py: JSON and rich console reports.
- model.py: Data structures for facts, results and issues.
"""

from .analyzer import Analyzer, classify_status
from .model import HARD_ISSUE_KINDS, AnalysisResult, Summary

__all__ = [
	"Analyzer",
	"AnalysisResult",
	"HARD_ISSUE_KINDS",
	"Summary",
	"classify_status",
]
