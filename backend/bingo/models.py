from bingo import db
import json
import time


class Room(db.Model):
    __tablename__ = 'room'
    id = db.Column(db.Integer, primary_key=True)
    room_code = db.Column(db.String(8), unique=True, nullable=False, index=True)
    status = db.Column(db.String(32), default='waiting', nullable=False) # waiting, in_progress, finished
    max_players = db.Column(db.Integer, default=8, nullable=False)
    rounds_total = db.Column(db.Integer, default=3, nullable=False)
    cards_per_player = db.Column(db.Integer, default=1, nullable=False)
    free_center = db.Column(db.Boolean, default=True, nullable=False)
    current_round_number = db.Column(db.Integer, default=0, nullable=False)
    round_start_time = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.Float, default=time.time)
    players = db.relationship('Player', back_populates='room', order_by='Player.id')
    rounds = db.relationship('Round', back_populates='room', lazy='dynamic')

    @property
    def current_round(self):
        if not self.current_round_number:
            return None
        return self.rounds.filter_by(round_number=self.current_round_number).first()

    @property
    def rounds_completed(self):
        return self.rounds.filter_by(status='completed').count()

    def to_dict(self, include_players=True):
        data = {
            'id': self.id,
            'room_code': self.room_code,
            'status': self.status,
            'max_players': self.max_players,
            'rounds_total': self.rounds_total,
            'rounds_completed': self.rounds_completed,
            'cards_per_player': self.cards_per_player,
            'free_center': self.free_center,
            'current_round_number': self.current_round_number,
            'round_start_time': self.round_start_time,
        }
        if include_players:
            data['players'] = [p.to_dict() for p in self.players]
        return data


class Player(db.Model):
    """A seat in a room, independent of any authenticated identity."""
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    avatar_name = db.Column(db.String(64), nullable=True)
    role = db.Column(db.String(16), default='player', nullable=False) # host, player
    total_score = db.Column(db.Integer, default=0, nullable=False)
    joined_at = db.Column(db.Float, default=time.time)
    room = db.relationship('Room', back_populates='players')
    cards = db.relationship('Card', back_populates='player', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'name': self.name,
            'avatar_name': self.avatar_name,
            'role': self.role,
            'total_score': self.total_score,
        }


class Round(db.Model):
    __tablename__ = 'round'
    __table_args__ = (
        db.UniqueConstraint('room_id', 'round_number', name='uq_round_room_number'),
    )
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False, index=True)
    round_number = db.Column(db.Integer, nullable=False)
    draw_sequence_json = db.Column('draw_sequence', db.Text, nullable=False)  # JSON-encoded permutation of 1..75
    current_draw_index = db.Column(db.Integer, default=0, nullable=False)
    status = db.Column(db.String(16), default='active', nullable=False) # active, completed
    start_time = db.Column(db.Float, nullable=False, default=time.time)
    end_time = db.Column(db.Float, nullable=True)
    room = db.relationship('Room', back_populates='rounds')
    cards = db.relationship('Card', back_populates='round', lazy='dynamic')

    @property
    def draw_sequence(self):
        return json.loads(self.draw_sequence_json) if self.draw_sequence_json else []

    @draw_sequence.setter
    def draw_sequence(self, numbers):
        self.draw_sequence_json = json.dumps(list(numbers))

    @property
    def drawn_numbers(self):
        """The revealed prefix of the draw sequence."""
        return self.draw_sequence[:self.current_draw_index]

    def to_dict(self):
        drawn = self.drawn_numbers
        return {
            'id': self.id,
            'room_id': self.room_id,
            'round_number': self.round_number,
            'status': self.status,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'current_draw_index': self.current_draw_index,
            'drawn_numbers': drawn,
            'current_number': drawn[-1] if drawn else None,
        }


class Card(db.Model):
    __tablename__ = 'card'
    __table_args__ = (
        db.UniqueConstraint('player_id', 'round_id', 'card_number', name='uq_card_player_round_number'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    round_id = db.Column(db.Integer, db.ForeignKey('round.id'), nullable=False, index=True)
    card_number = db.Column(db.Integer, nullable=False)
    numbers_json = db.Column('numbers', db.Text, nullable=False)
    marked_positions_json = db.Column('marked_positions', db.Text, nullable=False)
    is_winner = db.Column(db.Boolean, default=False, nullable=False)
    points_earned = db.Column(db.Integer, default=0, nullable=False)
    card_hash = db.Column(db.String(64), nullable=True)
    player = db.relationship('Player', back_populates='cards')
    round = db.relationship('Round', back_populates='cards')

    @property
    def numbers(self):
        return json.loads(self.numbers_json)

    @numbers.setter
    def numbers(self, values):
        self.numbers_json = json.dumps(list(values))

    @property
    def marked_positions(self):
        return json.loads(self.marked_positions_json)

    @marked_positions.setter
    def marked_positions(self, values):
        self.marked_positions_json = json.dumps([bool(v) for v in values])

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'round_id': self.round_id,
            'card_number': self.card_number,
            'numbers': self.numbers,
            'marked_positions': self.marked_positions,
            'is_winner': self.is_winner,
            'points_earned': self.points_earned,
            'card_hash': self.card_hash,
        }
