FENCE = "```"


def _strip_fences(answer: str) -> str:
    if answer.startswith(FENCE):
        # The opening fence may carry a language tag, drop the whole line.
        newline = answer.find("\n")
        if newline != -1:
            answer = answer[newline + 1 :]

    if answer.endswith(FENCE):
        answer = answer[: answer.rfind(FENCE)]

    return answer.strip()


def normalize_answer(raw: str) -> str:
    """
    Strips the markdown code fence a model may wrap its answer in, leaving a
    command line that can be handed to a shell as is.

    Only fences at the very start or end of the answer are removed. Backticks
    inside the command (e.g. ``echo `date` ``) are left alone. Stripping is
    repeated until nothing changes, so normalizing twice gives the same result
    as normalizing once.
    """
    answer = raw.strip()
    while True:
        stripped = _strip_fences(answer)
        if stripped == answer:
            return answer
        answer = stripped
