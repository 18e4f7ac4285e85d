"""
Central signal registry.

Uses blinker namespaces so modules can react to study events without
importing each other.

Usage:
    # Publisher
    from memospark_app.core.signals import card_rated
    card_rated.send(controller, index=3, rating='good')

    # Subscriber
    @card_rated.connect
    def on_card_rated(sender, **kwargs):
        ...
"""
from blinker import Namespace

study_signals = Namespace()

# Fired after a flashcard rating is applied
# Payload: index, rating, card_id, remote (bool)
card_rated = study_signals.signal('card_rated')

# Fired when session-scoped state is wiped (deck change or restart)
# Payload: reason ('deck_change' | 'restart'), deck_identifier
session_reset = study_signals.signal('session_reset')

# Fired once when every non-empty activity is complete
# Payload: stats (dict), activity_times (dict)
session_completed = study_signals.signal('session_completed')

# Fired after materials are applied to a controller
# Payload: deck_identifier, counts (dict)
materials_loaded = study_signals.signal('materials_loaded')

processing_signals = Namespace()

# Fired when a processed document has been staged for study
# Payload: client_id, document_id, counts (dict)
document_processed = processing_signals.signal('document_processed')

# Fired when a search-flashcards job has been staged for study
# Payload: client_id, job_id, search_id
search_job_completed = processing_signals.signal('search_job_completed')


def safe_send(signal, sender, logger=None, **payload) -> None:
    """Emit a signal; a failing receiver never breaks the caller."""
    try:
        signal.send(sender, **payload)
    except Exception as exc:  # receivers are third-party code
        if logger is not None:
            logger.error(f"Error emitting {signal.name} signal: {exc}")
