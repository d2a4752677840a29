from __future__ import annotations

import os
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from modcheck.analyzer import Analyzer
from modcheck.logging_config import setup_logging
from modcheck.model import AnalysisResult, Summary


setup_logging()

app = FastAPI(title="modcheck")


class AnalyzeRequest(BaseModel):
	root_path: str
	target: Optional[str] = None
	recursive: bool = True
	extensions: Optional[List[str]] = None
	ignore: Optional[List[str]] = None


class AnalyzeFileRequest(BaseModel):
	root_path: str
	target: str


def _project_root(root_path: str) -> str:
	root = os.path.abspath(root_path)
	if not os.path.isdir(root):
		raise HTTPException(status_code=400, detail=f"Invalid root_path: {root}")
	return root


@app.post("/analyze", response_model=Summary)
def analyze(req: AnalyzeRequest) -> Summary:
	root = _project_root(req.root_path)
	directory = os.path.abspath(os.path.join(root, req.target)) if req.target else root
	if not os.path.isdir(directory):
		raise HTTPException(status_code=400, detail=f"Invalid target directory: {directory}")
	return Analyzer(root).analyze_directory(
		directory,
		extensions=req.extensions,
		ignore=req.ignore,
		recursive=req.recursive,
	)


@app.post("/analyze/file", response_model=AnalysisResult)
def analyze_file(req: AnalyzeFileRequest) -> AnalysisResult:
	root = _project_root(req.root_path)
	path = os.path.abspath(os.path.join(root, req.target))
	if not os.path.isfile(path):
		raise HTTPException(status_code=400, detail=f"Invalid target file: {path}")
	return Analyzer(root).analyze_file(path)


def create_app() -> FastAPI:
	return app
