#!/usr/bin/env python3
"""
Example usage of FeedbackSense batch classification.

Runs in keyword-only mode unless a provider key such as GEMINI_API_KEY is
set, in which case batches go to the configured model first.
"""

import asyncio
import json
import logging

from feedbacksense import BatchProgress, FeedbackSense, FeedbackSenseConfig

SAMPLE_FEEDBACK = [
    "This app is amazing, I love it!",
    "The app crashes with an error every time I open it",
    "My package arrived two weeks late and the box was damaged",
    "Please add a dark mode feature",
    "I was charged twice, I want a refund",
    "The support staff were rude and unhelpful",
    "The material feels cheap and flimsy",
    "What are your opening hours?",
]


def print_progress(progress: BatchProgress) -> None:
    print(
        f"  batch {progress.batches_completed}/{progress.total_batches}: "
        f"{progress.processed}/{progress.total} ({progress.percentage}%)"
    )


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    config = FeedbackSenseConfig(batch_delay_ms=500)
    with FeedbackSense(config=config) as sense:
        print(f"AI available: {sense.ai_available}")

        results = await sense.analyze_batch(
            SAMPLE_FEEDBACK, max_batch_size=5, on_progress=print_progress
        )

        for text, analysis in zip(SAMPLE_FEEDBACK, results):
            print(
                f"{analysis.ai_category:<20} {analysis.ai_category_confidence:.2f} "
                f"{analysis.sentiment_label.value:<8} {text}"
            )

        # A reviewer disagrees with one prediction
        first = results[3]
        sense.record_correction(
            SAMPLE_FEEDBACK[3], first.ai_category, "feature_request", first.ai_category_confidence
        )
        print(json.dumps(sense.get_metrics(), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
