from dataclasses import dataclass
from decimal import Decimal
import logging
import math

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from settings.models import BusinessSettings
from .models import Customer, normalize_phone

logger = logging.getLogger(__name__)

# Phone numbers this short are treated as missing
MIN_PHONE_LENGTH = 6
PLACEHOLDER_NAME = "New Customer"


@dataclass
class LoyaltyAward:
    customer: Customer
    points_earned: int
    tier_before: str
    tier_after: str
    multiplier: Decimal


class LoyaltyService:
    """
    Loyalty accrual on settled orders.

    Canonical rule:
        tier       = tier of the customer's spend BEFORE this order
        points     = floor(floor(order_total / point_ratio) × multiplier(tier))
        afterwards total_spent += order_total, visit_count += 1 and the tier
        is recomputed from the new lifetime spend.
    """

    @staticmethod
    def calculate_points(order_total, tier, business_settings):
        base_points = math.floor(Decimal(order_total) / business_settings.point_ratio)
        multiplier = business_settings.multiplier_for_tier(tier)
        return math.floor(Decimal(base_points) * multiplier)

    @staticmethod
    def resolve_or_create_customer(tenant_id, customer=None, name="", phone=""):
        """
        Find the customer an order belongs to.

        Lookup order: explicit customer, then phone (longer than 5
        characters), then case-insensitive exact name when there is no usable
        phone. Creates a regular-tier customer when nothing matches. Returns
        None when the order carries no identity at all, and the placeholder
        name without a phone does not count as one.

        A matched customer missing a name or phone gets it from the order.
        """
        phone = normalize_phone(phone)
        if len(phone) < MIN_PHONE_LENGTH:
            phone = ""
        name = (name or "").strip()
        if name.lower() == PLACEHOLDER_NAME.lower():
            name = ""

        if customer is not None:
            return LoyaltyService._fill_missing_identity(customer, name, phone)

        customers = Customer.all_objects.filter(tenant_id=tenant_id)
        if phone:
            found = customers.filter(phone=phone).first()
        elif name:
            found = customers.filter(name__iexact=name).order_by('id').first()
        else:
            return None

        if found is not None:
            return LoyaltyService._fill_missing_identity(found, name, phone)

        try:
            with transaction.atomic():
                created = Customer.all_objects.create(
                    tenant_id=tenant_id,
                    name=name or PLACEHOLDER_NAME,
                    phone=phone or None,
                    tier=Customer.Tier.REGULAR,
                )
        except IntegrityError:
            # Another request created the same phone first
            return customers.get(phone=phone)

        logger.info(f"Created loyalty customer {created.pk} for tenant {tenant_id}")
        return created

    @staticmethod
    def _fill_missing_identity(customer, name, phone):
        updates = {}
        if name and (not customer.name or customer.name == PLACEHOLDER_NAME):
            updates['name'] = name
        if phone and not customer.phone:
            taken = Customer.all_objects.filter(
                tenant_id=customer.tenant_id, phone=phone
            ).exclude(pk=customer.pk).exists()
            if not taken:
                updates['phone'] = phone
        if updates:
            Customer.all_objects.filter(pk=customer.pk).update(**updates)
            for field, value in updates.items():
                setattr(customer, field, value)
        return customer

    @staticmethod
    @transaction.atomic
    def award_points(customer, order_total, business_settings=None):
        """
        Apply one settled order to the customer's loyalty record.

        Returns:
            LoyaltyAward describing the points earned and tier change.
        """
        order_total = Decimal(order_total)
        locked = Customer.all_objects.select_for_update().get(pk=customer.pk)
        if business_settings is None:
            business_settings = BusinessSettings.for_tenant(locked.tenant)

        tier_before = business_settings.tier_for_spend(locked.total_spent)
        multiplier = business_settings.multiplier_for_tier(tier_before)
        points = LoyaltyService.calculate_points(order_total, tier_before, business_settings)
        tier_after = business_settings.tier_for_spend(locked.total_spent + order_total)

        now = timezone.now()
        updates = {
            'total_spent': F('total_spent') + order_total,
            'visit_count': F('visit_count') + 1,
            'points': F('points') + points,
            'tier': tier_after,
            'last_order_date': now,
        }
        if points > 0:
            updates['last_points_earned_at'] = now
        Customer.all_objects.filter(pk=locked.pk).update(**updates)
        locked.refresh_from_db()

        if tier_after != tier_before:
            logger.info(f"Customer {locked.pk} moved from {tier_before} to {tier_after}")

        return LoyaltyAward(
            customer=locked,
            points_earned=points,
            tier_before=tier_before,
            tier_after=tier_after,
            multiplier=multiplier,
        )
