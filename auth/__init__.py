"""auth/ -- Authentication and account management for InternTrack.

Layer rule: auth/ imports from core/ and third-party libraries only.
It does NOT import from api/, internship/, or mail/; collaborators such as the
mail sender and the stream lookup are passed into AuthService.
api/ imports from auth/, not the other way around.
"""
