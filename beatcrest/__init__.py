"""BeatCrest: Firestore data-access layer for the beat marketplace."""
