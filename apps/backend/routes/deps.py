"""Service wiring for route handlers: one Supabase client, fresh repositories per request."""

from apps.backend.services.analytics.analytics_repository import AnalyticsRepository
from apps.backend.services.analytics.analytics_service import AnalyticsService
from apps.backend.services.benefit_cards.benefit_card_repository import BenefitCardRepository
from apps.backend.services.benefit_cards.benefit_card_service import BenefitCardService
from apps.backend.services.bundles.bundle_program_repository import BundleProgramRepository
from apps.backend.services.bundles.bundle_program_service import BundleProgramService
from apps.backend.services.bundles.bundle_repository import BundleRepository
from apps.backend.services.bundles.bundle_service import BundleService
from apps.backend.services.core_service import require_supabase
from apps.backend.services.loyalty.loyalty_repository import LoyaltyRepository
from apps.backend.services.loyalty.loyalty_service import LoyaltyService
from apps.backend.services.merchant_users.merchant_user_repository import MerchantUserRepository
from apps.backend.services.merchant_users.merchant_user_service import MerchantUserService
from apps.backend.services.merchants.file_upload import FileUploadService
from apps.backend.services.merchants.merchant_repository import MerchantRepository
from apps.backend.services.merchants.merchant_service import MerchantService
from apps.backend.services.punches.punch_card_repository import PunchCardRepository
from apps.backend.services.punches.punch_service import PunchService
from apps.backend.services.styles.style_repository import StyleRepository
from apps.backend.services.styles.style_service import StyleService
from apps.backend.services.users.user_repository import UserRepository
from apps.backend.utils.settings import settings


def merchant_service() -> MerchantService:
    sb = require_supabase()
    return MerchantService(MerchantRepository(sb), MerchantUserRepository(sb))


def merchant_user_service() -> MerchantUserService:
    sb = require_supabase()
    return MerchantUserService(MerchantUserRepository(sb), MerchantRepository(sb))


def file_upload_service() -> FileUploadService:
    return FileUploadService(require_supabase(), settings.UPLOADS_BUCKET)


def loyalty_service() -> LoyaltyService:
    sb = require_supabase()
    return LoyaltyService(LoyaltyRepository(sb), MerchantRepository(sb))


def style_service() -> StyleService:
    return StyleService(StyleRepository(require_supabase()))


def punch_service() -> PunchService:
    sb = require_supabase()
    return PunchService(
        PunchCardRepository(sb),
        LoyaltyRepository(sb),
        MerchantRepository(sb),
        UserRepository(sb),
        StyleService(StyleRepository(sb)),
    )


def bundle_program_service() -> BundleProgramService:
    sb = require_supabase()
    return BundleProgramService(BundleProgramRepository(sb), MerchantRepository(sb))


def bundle_service() -> BundleService:
    sb = require_supabase()
    return BundleService(
        BundleRepository(sb),
        BundleProgramRepository(sb),
        MerchantRepository(sb),
        UserRepository(sb),
    )


def benefit_card_service() -> BenefitCardService:
    sb = require_supabase()
    return BenefitCardService(
        BenefitCardRepository(sb),
        MerchantRepository(sb),
        UserRepository(sb),
        StyleService(StyleRepository(sb)),
    )


def analytics_service() -> AnalyticsService:
    sb = require_supabase()
    return AnalyticsService(AnalyticsRepository(sb), MerchantRepository(sb))
