"""Web API for studybridge."""
