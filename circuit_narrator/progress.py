"""
Progress reporting for CLI runs.

A run walks through some of the stages below (identify never segments,
speak never classifies). Stages that never start are left out of the
summary.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


class ProcessingStage(Enum):
    """Stages a command can report progress for."""
    MODEL_LOADING = "model_loading"
    CLASSIFICATION = "classification"
    SEGMENTATION = "segmentation"
    SYNTHESIS = "synthesis"
    ENCODING = "encoding"

    @property
    def title(self) -> str:
        return self.value.replace('_', ' ').title()


@dataclass
class StageProgress:
    """Mutable state of one stage."""
    stage: ProcessingStage
    status: str = "pending"  # pending, in_progress, completed, failed
    started: Optional[datetime] = None
    finished: Optional[datetime] = None
    percentage: float = 0.0
    total_items: int = 0
    completed_items: int = 0
    current_item: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def seconds(self) -> Optional[float]:
        if self.started is None:
            return None
        return ((self.finished or datetime.now()) - self.started).total_seconds()


StageCallback = Callable[[StageProgress], None]


class ProgressTracker:
    """
    Tracks stage progress for one command and prints it to the console.

    Every change is also handed to registered callbacks, so callers can
    render progress their own way with console output turned off.
    """

    def __init__(self, enable_console_output: bool = True):
        self.enable_console_output = enable_console_output
        self.stages: Dict[ProcessingStage, StageProgress] = {
            stage: StageProgress(stage) for stage in ProcessingStage
        }
        self.current_stage: Optional[ProcessingStage] = None
        self.started: Optional[datetime] = None
        self.finished: Optional[datetime] = None
        self.summary_data: Dict[str, Any] = {}
        self._callbacks: List[StageCallback] = []

    def add_progress_callback(self, callback: StageCallback) -> None:
        self._callbacks.append(callback)

    def start_pipeline(self, title: str = "Circuit Narrator") -> None:
        self.started = datetime.now()
        self.finished = None
        logger.info(f"Starting {title}")
        self._print(f"🚀 Starting {title}\n" + "=" * 50)

    def start_stage(self, stage: ProcessingStage, total_items: int = 0,
                    details: Optional[Dict[str, Any]] = None) -> None:
        """Mark a stage as running, resetting any earlier progress."""
        progress = StageProgress(stage, status="in_progress", started=datetime.now(),
                                 total_items=total_items, details=dict(details or {}))
        self.stages[stage] = progress
        self.current_stage = stage

        logger.info(f"Stage started: {stage.title}")
        self._print(f"\n📋 {stage.title}")
        if total_items:
            self._print(f"   {total_items} item(s) to process")
        self._notify(progress)

    def update_stage_progress(self, stage: ProcessingStage, completed_items: Optional[int] = None,
                              current_item: str = "", details: Optional[Dict[str, Any]] = None,
                              percentage: Optional[float] = None) -> None:
        """
        Record progress for a running stage.

        Args:
            stage: Stage to update
            completed_items: Items finished so far; sets the percentage when the stage has a total
            current_item: Label of the item being worked on
            details: Extra values merged into the stage details
            percentage: Explicit percentage for stages without countable items (clamped to 0-100)
        """
        progress = self.stages[stage]

        if completed_items is not None:
            progress.completed_items = completed_items
            if progress.total_items:
                progress.percentage = completed_items * 100 / progress.total_items
        if percentage is not None:
            progress.percentage = max(0.0, min(100.0, float(percentage)))
        if current_item:
            progress.current_item = current_item
        if details:
            progress.details.update(details)

        logger.debug(f"{stage.value}: {progress.percentage:.1f}%")
        if progress.total_items and completed_items is not None:
            suffix = f" - {current_item}" if current_item else ""
            self._print(f"   Progress: {progress.completed_items}/{progress.total_items} "
                        f"({progress.percentage:.1f}%){suffix}")
        elif percentage is not None:
            self._print(f"   Progress: {progress.percentage:.0f}%")
        self._notify(progress)

    def complete_stage(self, stage: ProcessingStage, success: bool = True,
                       details: Optional[Dict[str, Any]] = None) -> None:
        """Finish a stage; a failed stage keeps the percentage it reached."""
        progress = self.stages[stage]
        progress.status = "completed" if success else "failed"
        progress.finished = datetime.now()
        if success:
            progress.percentage = 100.0
        if details:
            progress.details.update(details)
        if self.current_stage == stage:
            self.current_stage = None

        took = f" ({progress.seconds:.1f}s)" if progress.seconds is not None else ""
        if success:
            logger.info(f"Stage completed: {stage.title}{took}")
            self._print(f"   ✅ Completed{took}")
        else:
            logger.error(f"Stage failed: {stage.title}{took}")
            self._print(f"   ❌ Failed{took}")
        self._notify(progress)

    def update_summary_data(self, **kwargs) -> None:
        self.summary_data.update(kwargs)

    def complete_pipeline(self, success: bool = True) -> Dict[str, Any]:
        """Finish the run, print the summary and return it."""
        self.finished = datetime.now()
        summary = self.generate_completion_summary()
        if success:
            logger.info("Run completed")
        else:
            logger.error("Run failed")
        if self.enable_console_output:
            self._print_completion_summary(summary, success)
        return summary

    def generate_completion_summary(self) -> Dict[str, Any]:
        started = [p for p in self.stages.values() if p.status != "pending"]
        completed = sum(1 for p in started if p.status == "completed")
        failed = sum(1 for p in started if p.status == "failed")

        duration = None
        if self.started and self.finished:
            duration = (self.finished - self.started).total_seconds()

        return {
            'pipeline_duration': duration,
            'stages_completed': completed,
            'stages_failed': failed,
            'total_stages': len(started),
            'success_rate': completed * 100 / len(started) if started else 0,
            'sentences': self.summary_data.get('sentences', 0),
            'audio_seconds': self.summary_data.get('audio_seconds', 0.0),
            'matches': self.summary_data.get('matches', 0),
            'stage_details': {
                p.stage.value: {'status': p.status, 'duration': p.seconds, 'details': p.details}
                for p in started
            },
        }

    def _print_completion_summary(self, summary: Dict[str, Any], success: bool) -> None:
        lines = ["", "🎉 Completed successfully!" if success else "❌ Failed", "=" * 50]
        if summary['pipeline_duration']:
            lines.append(f"⏱️  Total Duration: {summary['pipeline_duration']:.1f} seconds")
        lines.append(f"✅ Stages Completed: {summary['stages_completed']}/{summary['total_stages']}")
        if summary['sentences']:
            lines.append(f"   🗣️  Sentences: {summary['sentences']}")
            lines.append(f"   🔊 Audio: {summary['audio_seconds']:.1f}s")
        if summary['matches']:
            lines.append(f"   🔍 Matches: {summary['matches']}")
        lines.append("=" * 50)
        self._print("\n".join(lines))

    def _print(self, message: str) -> None:
        if self.enable_console_output:
            print(message)

    def _notify(self, progress: StageProgress) -> None:
        for callback in self._callbacks:
            callback(progress)
