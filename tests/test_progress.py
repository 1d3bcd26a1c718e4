"""
Tests for progress tracking.
"""

from circuit_narrator.progress import ProcessingStage, ProgressTracker


class TestProgressTracker:
    """Test stage lifecycle and summaries."""

    def test_stage_lifecycle(self):
        tracker = ProgressTracker(enable_console_output=False)
        tracker.start_stage(ProcessingStage.SYNTHESIS, total_items=4)
        tracker.update_stage_progress(ProcessingStage.SYNTHESIS, completed_items=1, current_item="Sentence 2/4")

        stage = tracker.stages[ProcessingStage.SYNTHESIS]
        assert stage.status == "in_progress"
        assert stage.percentage == 25.0
        assert stage.current_item == "Sentence 2/4"
        assert tracker.current_stage == ProcessingStage.SYNTHESIS

        tracker.complete_stage(ProcessingStage.SYNTHESIS)
        assert stage.status == "completed"
        assert stage.percentage == 100.0
        assert stage.seconds is not None
        assert tracker.current_stage is None

    def test_restarting_stage_clears_progress(self):
        tracker = ProgressTracker(enable_console_output=False)
        tracker.start_stage(ProcessingStage.SYNTHESIS, total_items=2)
        tracker.update_stage_progress(ProcessingStage.SYNTHESIS, completed_items=2, details={'voice': 'eng'})
        tracker.start_stage(ProcessingStage.SYNTHESIS, total_items=3)

        stage = tracker.stages[ProcessingStage.SYNTHESIS]
        assert stage.completed_items == 0
        assert stage.percentage == 0.0
        assert stage.details == {}

    def test_explicit_percentage_is_clamped(self):
        tracker = ProgressTracker(enable_console_output=False)
        tracker.start_stage(ProcessingStage.MODEL_LOADING)
        tracker.update_stage_progress(ProcessingStage.MODEL_LOADING, percentage=140)
        assert tracker.stages[ProcessingStage.MODEL_LOADING].percentage == 100.0

    def test_failed_stage_keeps_percentage(self):
        tracker = ProgressTracker(enable_console_output=False)
        tracker.start_stage(ProcessingStage.MODEL_LOADING)
        tracker.update_stage_progress(ProcessingStage.MODEL_LOADING, percentage=40)
        tracker.complete_stage(ProcessingStage.MODEL_LOADING, success=False)

        stage = tracker.stages[ProcessingStage.MODEL_LOADING]
        assert stage.status == "failed"
        assert stage.percentage == 40.0

    def test_summary_only_counts_started_stages(self):
        tracker = ProgressTracker(enable_console_output=False)
        tracker.start_pipeline()
        tracker.start_stage(ProcessingStage.SEGMENTATION)
        tracker.complete_stage(ProcessingStage.SEGMENTATION)
        tracker.start_stage(ProcessingStage.SYNTHESIS)
        tracker.complete_stage(ProcessingStage.SYNTHESIS, success=False)
        tracker.update_summary_data(sentences=3, audio_seconds=1.5)

        summary = tracker.complete_pipeline(success=False)

        assert summary['total_stages'] == 2
        assert summary['stages_completed'] == 1
        assert summary['stages_failed'] == 1
        assert summary['success_rate'] == 50.0
        assert summary['sentences'] == 3
        assert summary['pipeline_duration'] is not None
        assert set(summary['stage_details']) == {'segmentation', 'synthesis'}

    def test_summary_before_any_stage(self):
        tracker = ProgressTracker(enable_console_output=False)
        summary = tracker.generate_completion_summary()

        assert summary['total_stages'] == 0
        assert summary['success_rate'] == 0
        assert summary['pipeline_duration'] is None

    def test_callbacks_receive_updates(self):
        tracker = ProgressTracker(enable_console_output=False)
        seen = []
        tracker.add_progress_callback(lambda progress: seen.append((progress.stage, progress.status)))

        tracker.start_stage(ProcessingStage.ENCODING)
        tracker.complete_stage(ProcessingStage.ENCODING)

        assert seen == [
            (ProcessingStage.ENCODING, "in_progress"),
            (ProcessingStage.ENCODING, "completed"),
        ]

    def test_console_output(self, capsys):
        tracker = ProgressTracker(enable_console_output=True)
        tracker.start_pipeline("narration")
        tracker.start_stage(ProcessingStage.SYNTHESIS, total_items=2)
        tracker.update_stage_progress(ProcessingStage.SYNTHESIS, completed_items=1)
        tracker.complete_stage(ProcessingStage.SYNTHESIS)
        tracker.update_summary_data(sentences=2, audio_seconds=0.5)
        tracker.complete_pipeline()

        out = capsys.readouterr().out
        assert "Starting narration" in out
        assert "Progress: 1/2 (50.0%)" in out
        assert "Sentences: 2" in out

    def test_quiet_tracker_prints_nothing(self, capsys):
        tracker = ProgressTracker(enable_console_output=False)
        tracker.start_pipeline()
        tracker.start_stage(ProcessingStage.CLASSIFICATION)
        tracker.complete_stage(ProcessingStage.CLASSIFICATION)
        tracker.complete_pipeline()

        assert capsys.readouterr().out == ""
