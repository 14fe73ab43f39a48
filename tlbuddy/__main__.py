from tlbuddy.bot import run

run()
