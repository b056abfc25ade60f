"""
Services layer - Business logic goes here.
Keep services focused on specific domains (submission, upvotes, ranking, etc.)

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Collaborators (store, ranker, broadcaster) are injected so tests can swap them
- AI-backed ranking is optional and never blocks a submission
"""
