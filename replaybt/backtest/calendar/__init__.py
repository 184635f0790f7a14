from replaybt.backtest.calendar.always_open import AlwaysOpenCalendar
from replaybt.backtest.calendar.factory import CalendarFactory
from replaybt.backtest.calendar.nyse import NYSECalendar
from replaybt.backtest.calendar.weekday import WeekdayCalendar

__all__ = ["AlwaysOpenCalendar", "CalendarFactory", "NYSECalendar", "WeekdayCalendar"]
