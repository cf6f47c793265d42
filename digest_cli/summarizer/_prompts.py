"""Prompt templates for map-reduce summarization.

The map prompt is applied to each chunk, the reduce prompt to every batch of
summaries during collapse and to the final set of summaries.
"""

# MAP - Summarize one chunk of the source document
CHUNK_SUMMARY_PROMPT = """Summarize the following content.
Output only the summary, without explanations, analysis or suggestions.

{content}""".strip()

# REDUCE - Merge a batch of summaries into one
REDUCE_SUMMARY_PROMPT = """Below is a set of summaries:

{summaries}

Merge these summaries into a single complete summary. Requirements:
1. Output only the final summary
2. Do not include meta information, explanations or analysis
3. Do not mention rewriting, optimizing or any other process
4. Give the summary directly""".strip()

# STUFF - Summarize a whole document in one call
STUFF_SUMMARY_PROMPT = """Briefly summarize this article in at most {max_words} words.

<article>
{content}
</article>""".strip()

SUMMARY_SEPARATOR = "\n\n"


def format_summaries_for_reduce(summaries: list[str]) -> str:
    """Join summaries for the reduce prompt, keeping their order."""
    return SUMMARY_SEPARATOR.join(s.strip() for s in summaries)
