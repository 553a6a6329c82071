from cinequiz import db
from cinequiz.models import User, Question

SEED_USERS = ['testuser1', 'testuser2', 'testuser3']

# (question, A, B, C, D, correct, category, difficulty)
SEED_QUESTIONS = [
    ('Who directed "Pulp Fiction"?', 'Martin Scorsese', 'Quentin Tarantino', 'David Fincher', 'Guy Ritchie', 'B', 'general', 1),
    ('In which year was "Titanic" released?', '1995', '1996', '1997', '1998', 'C', 'by_year', 1),
    ('Which film won the Palme d\'Or in 2019?', 'Parasite', 'Joker', 'Roma', 'Shoplifters', 'A', 'by_festival', 2),
    ('Who played Neo in "The Matrix"?', 'Brad Pitt', 'Tom Cruise', 'Keanu Reeves', 'Will Smith', 'C', 'by_actor', 1),
    ('"Alien" (1979) is best described as which genre?', 'Western', 'Sci-fi horror', 'Musical', 'Romantic comedy', 'B', 'by_genre', 1),
    ('Which film tops the IMDb Top 250 list?', 'The Godfather', 'The Dark Knight', 'The Shawshank Redemption', 'Pulp Fiction', 'C', 'top_250', 2),
    ('Who composed the score for "Inception"?', 'John Williams', 'Hans Zimmer', 'Ennio Morricone', 'Howard Shore', 'B', 'general', 2),
    ('What is the name of the hobbit played by Elijah Wood?', 'Samwise', 'Pippin', 'Bilbo', 'Frodo', 'D', 'by_actor', 1),
    ('Which studio produced "Spirited Away"?', 'Pixar', 'Studio Ghibli', 'DreamWorks', 'Aardman', 'B', 'general', 1),
    ('In which year was "Casablanca" released?', '1939', '1942', '1946', '1950', 'B', 'by_year', 3),
    ('Who directed "2001: A Space Odyssey"?', 'Stanley Kubrick', 'Ridley Scott', 'Steven Spielberg', 'George Lucas', 'A', 'general', 2),
    ('Which festival awards the Golden Lion?', 'Cannes', 'Berlin', 'Venice', 'Sundance', 'C', 'by_festival', 2),
]


def seed_database():
    """Add the starter users and question bank. Returns (users, questions) added."""
    for name in SEED_USERS:
        db.session.add(User(id=name, display_name=name))
    for text, a, b, c, d, correct, category, difficulty in SEED_QUESTIONS:
        db.session.add(Question(
            question=text, option_a=a, option_b=b, option_c=c, option_d=d,
            correct_answer=correct, category=category, difficulty=difficulty,
        ))
    db.session.commit()
    return len(SEED_USERS), len(SEED_QUESTIONS)
