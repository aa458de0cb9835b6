import random

from django.shortcuts import render
from structlog.stdlib import get_logger


logger = get_logger(__name__)

SAMPLE_MESSAGE = "Some sample message."


def home(request):
    """Render the homepage."""

    return render(request, "theme/home.html", {"message": SAMPLE_MESSAGE})


def hide_test(request):
    """Render the message with its wrapper kept or stripped at random."""

    show = random.random() < 0.5
    logger.info("theme.hide_test", show=show)
    return render(
        request,
        "theme/hide_test.html",
        {"show": show, "message": SAMPLE_MESSAGE},
    )
