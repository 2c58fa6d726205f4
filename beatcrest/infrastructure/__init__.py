"""Infrastructure: Firestore client, repositories, security helpers."""
