"""Chat pools and names for simulated participants."""

ORDINARY_CHAT_MESSAGES = (
    "I'm definitely on the ordinary side.",
    "I'll keep quiet and watch this round.",
    "Has anyone noticed something suspicious?",
    "Nobody stands out to me yet.",
    "Please vote carefully.",
    "Who do you think the saboteur is?",
    "Who did we lose last night?",
    "Trust me, I'm just an ordinary player.",
    "A saboteur wouldn't talk like that, I think.",
    "This one seems suspicious to me.",
)

SABOTEUR_CHAT_MESSAGES = (
    "I'm ordinary, honestly.",
    "Try suspecting someone else.",
    "Please trust me.",
    "Don't accuse people without evidence.",
    "Let's all calm down and think this through.",
)

DEFENSE_MESSAGES = (
    "I'm ordinary, I promise! Trust me!",
    "If I were a saboteur I wouldn't have acted like this.",
    "Look at someone else. I'm innocent.",
    "Think hard before you vote. I'm on your side.",
    "Executing me only hurts the ordinary side.",
)

BOT_NAMES = (
    "Farmer",
    "Merchant",
    "Carpenter",
    "Cook",
    "Guard",
    "Healer",
    "Fisher",
    "Musician",
    "Painter",
    "Tailor",
)

BOT_NAME_PREFIX = "Bot"
