"""Initial flight booking schema

Revision ID: 0001
Revises:
Create Date: 2026-03-01 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create users table (profiles mirrored from the identity provider)
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('first_name', sa.String(length=128), nullable=False),
        sa.Column('last_name', sa.String(length=128), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('country', sa.String(length=128), nullable=True),
        sa.Column('postal_code', sa.String(length=16), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)

    # Create airports table
    op.create_table('airports',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('iata_code', sa.String(length=3), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=128), nullable=False),
        sa.Column('country', sa.String(length=128), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('iata_code')
    )
    op.create_index(op.f('ix_airports_iata_code'), 'airports', ['iata_code'], unique=False)

    # Create flights table
    op.create_table('flights',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('flight_number', sa.String(length=16), nullable=False),
        sa.Column('airline', sa.String(length=128), nullable=False),
        sa.Column('aircraft', sa.String(length=128), nullable=True),
        sa.Column('origin', sa.String(length=3), nullable=False),
        sa.Column('destination', sa.String(length=3), nullable=False),
        sa.Column('departure_time', sa.DateTime(), nullable=False),
        sa.Column('arrival_time', sa.DateTime(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('duration_minutes > 0', name='ck_flight_duration_positive'),
        sa.CheckConstraint('arrival_time > departure_time', name='ck_flight_arrival_after_departure'),
        sa.CheckConstraint('origin <> destination', name='ck_flight_origin_ne_destination'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_flights_flight_number'), 'flights', ['flight_number'], unique=False)
    op.create_index(op.f('ix_flights_origin'), 'flights', ['origin'], unique=False)
    op.create_index(op.f('ix_flights_destination'), 'flights', ['destination'], unique=False)
    op.create_index(op.f('ix_flights_departure_time'), 'flights', ['departure_time'], unique=False)
    op.create_index(op.f('ix_flights_status'), 'flights', ['status'], unique=False)

    # Create flight_prices table
    op.create_table('flight_prices',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('flight_id', sa.Uuid(), nullable=False),
        sa.Column('cabin_class', sa.String(length=20), nullable=False),
        sa.Column('price_amount', sa.Integer(), nullable=False),
        sa.Column('price_currency', sa.String(length=3), nullable=False),
        sa.CheckConstraint('price_amount >= 0', name='ck_flight_price_amount_non_negative'),
        sa.CheckConstraint('length(price_currency) = 3', name='ck_flight_price_currency_length'),
        sa.ForeignKeyConstraint(['flight_id'], ['flights.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('flight_id', 'cabin_class', name='uq_flight_price_cabin')
    )
    op.create_index(op.f('ix_flight_prices_flight_id'), 'flight_prices', ['flight_id'], unique=False)

    # Create flight_seats table
    op.create_table('flight_seats',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('flight_id', sa.Uuid(), nullable=False),
        sa.Column('cabin_class', sa.String(length=20), nullable=False),
        sa.Column('total_seats', sa.Integer(), nullable=False),
        sa.Column('available_seats', sa.Integer(), nullable=False),
        sa.CheckConstraint('total_seats >= 0', name='ck_flight_seat_total_non_negative'),
        sa.CheckConstraint('available_seats >= 0', name='ck_flight_seat_available_non_negative'),
        sa.CheckConstraint('available_seats <= total_seats', name='ck_flight_seat_available_lte_total'),
        sa.ForeignKeyConstraint(['flight_id'], ['flights.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('flight_id', 'cabin_class', name='uq_flight_seat_cabin')
    )
    op.create_index(op.f('ix_flight_seats_flight_id'), 'flight_seats', ['flight_id'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('flight_id', sa.Uuid(), nullable=False),
        sa.Column('return_flight_id', sa.Uuid(), nullable=True),
        sa.Column('cabin_class', sa.String(length=20), nullable=False),
        sa.Column('total_price_amount', sa.Integer(), nullable=False),
        sa.Column('total_price_currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('booking_reference', sa.String(length=8), nullable=False),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('total_price_amount >= 0', name='ck_booking_total_price_non_negative'),
        sa.CheckConstraint('length(booking_reference) = 8', name='ck_booking_reference_length'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['flight_id'], ['flights.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['return_flight_id'], ['flights.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_reference')
    )
    op.create_index(op.f('ix_bookings_user_id'), 'bookings', ['user_id'], unique=False)
    op.create_index(op.f('ix_bookings_flight_id'), 'bookings', ['flight_id'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index(op.f('ix_bookings_booking_reference'), 'bookings', ['booking_reference'], unique=False)

    # Create passengers table
    op.create_table('passengers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('first_name', sa.String(length=128), nullable=False),
        sa.Column('last_name', sa.String(length=128), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('nationality', sa.String(length=64), nullable=False),
        sa.Column('passport_number', sa.String(length=32), nullable=True),
        sa.Column('aadhaar_number', sa.String(length=32), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('seat_number', sa.String(length=8), nullable=True),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('age IS NULL OR (age >= 0 AND age <= 120)', name='ck_passenger_age_range'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_passengers_booking_id'), 'passengers', ['booking_id'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index(op.f('ix_passengers_booking_id'), table_name='passengers')
    op.drop_table('passengers')

    op.drop_index(op.f('ix_bookings_booking_reference'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_status'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_flight_id'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_user_id'), table_name='bookings')
    op.drop_table('bookings')

    op.drop_index(op.f('ix_flight_seats_flight_id'), table_name='flight_seats')
    op.drop_table('flight_seats')

    op.drop_index(op.f('ix_flight_prices_flight_id'), table_name='flight_prices')
    op.drop_table('flight_prices')

    op.drop_index(op.f('ix_flights_status'), table_name='flights')
    op.drop_index(op.f('ix_flights_departure_time'), table_name='flights')
    op.drop_index(op.f('ix_flights_destination'), table_name='flights')
    op.drop_index(op.f('ix_flights_origin'), table_name='flights')
    op.drop_index(op.f('ix_flights_flight_number'), table_name='flights')
    op.drop_table('flights')

    op.drop_index(op.f('ix_airports_iata_code'), table_name='airports')
    op.drop_table('airports')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
