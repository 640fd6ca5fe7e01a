"""DocuSync AI Assistant.

A browser UI that sends pasted source code to the Gemini API and shows
the generated documentation or documentation-update suggestion.
"""

__version__ = "0.1.0"
