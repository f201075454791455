"""NewsIQ API: personalised news reading with quizzes, achievements and article chat."""
