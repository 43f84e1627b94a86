from conftest import FailingCompleter, RecordingCompleter

from memcore.summarizer import GENERAL_PROMPT, TYPE_PROMPTS, Summarizer, should_summarize

LONG = "I have been working on the billing migration for a while now. " * 5


def test_should_summarize_threshold():
    assert not should_summarize("x" * 200)
    assert should_summarize("x" * 201)


def test_summarize_uses_completion():
    completer = RecordingCompleter("Works on billing migration.")
    assert Summarizer(completer).summarize_memory(LONG) == "Works on billing migration."
    assert completer.prompts == [GENERAL_PROMPT]


def test_type_specific_prompt():
    completer = RecordingCompleter()
    Summarizer(completer).summarize_memory_with_type(LONG, "project")
    assert completer.prompts == [TYPE_PROMPTS["project"]]


def test_unknown_type_falls_back_to_general_prompt():
    completer = RecordingCompleter()
    Summarizer(completer).summarize_memory_with_type(LONG, "nonsense")
    assert completer.prompts == [GENERAL_PROMPT]


def test_provider_failure_returns_original():
    assert Summarizer(FailingCompleter()).summarize_memory(LONG) == LONG


def test_empty_completion_returns_original():
    assert Summarizer(RecordingCompleter("   ")).summarize_memory(LONG) == LONG


def test_batch_leaves_short_items_alone():
    completer = RecordingCompleter("Condensed.")
    results = Summarizer(completer).summarize_memories([
        {"content": "short note"},
        {"content": LONG, "type": "technical"},
    ])
    assert results == [
        {"original": "short note", "summarized": "short note"},
        {"original": LONG, "summarized": "Condensed."},
    ]
    assert completer.prompts == [TYPE_PROMPTS["technical"]]
