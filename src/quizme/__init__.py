"""QuizMe: author question sets, take quizzes and review results."""
