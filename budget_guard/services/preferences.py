from budget_guard.config import Settings, settings
from budget_guard.schemas.preferences import AlertThresholds, CurrencyFormat


class SettingsProvider:
    """Answers per-user alert and currency preferences.

    Preference storage lives outside this service, so every user gets the
    configured defaults. Subclass and override the getters to plug in a store.
    """

    def __init__(self, config: Settings = settings):
        self.config = config

    def get_currency_format(self, user_id: int) -> CurrencyFormat:
        return CurrencyFormat(
            symbol=self.config.DEFAULT_CURRENCY_SYMBOL,
            position=self.config.DEFAULT_CURRENCY_POSITION,
            decimal_places=self.config.DEFAULT_DECIMAL_PLACES,
            thousands_separator=self.config.DEFAULT_THOUSANDS_SEPARATOR,
            decimal_separator=self.config.DEFAULT_DECIMAL_SEPARATOR,
        )

    def get_alert_thresholds(self, user_id: int) -> AlertThresholds:
        return AlertThresholds(
            large_transaction_threshold=self.config.DEFAULT_LARGE_TRANSACTION_THRESHOLD,
            budget_threshold=self.config.DEFAULT_BUDGET_THRESHOLD,
            currency_symbol=self.config.DEFAULT_CURRENCY_SYMBOL,
        )


def get_settings_provider() -> SettingsProvider:
    return SettingsProvider()
