from liehard import db


class GameDocument(db.Model):
    """One live game-state document, stored whole as JSON."""
    __tablename__ = 'game_document'
    id = db.Column(db.String(64), primary_key=True)
    data = db.Column(db.JSON, nullable=False)
    updated_at = db.Column(db.Float, nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'data': self.data,
            'updated_at': self.updated_at,
        }
